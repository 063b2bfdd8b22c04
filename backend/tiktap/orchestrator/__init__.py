"""Pipeline orchestrator module.

Provides state machine coordination for the video job pipeline with:
- State machine transitions and constants (state.py)
- Per-stage status propagation into the job store (pipeline.py)
- Background task spawning for API job creation
- Progress callback interface for CLI integration

The job store validates transitions against state.py, so this package
does not import pipeline.py eagerly.
"""

__all__ = []
