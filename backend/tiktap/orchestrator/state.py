"""State machine constants and transition logic for the job pipeline.

Defines the strictly forward stage order a job moves through, plus the
terminal failure state reachable from any non-terminal stage.
"""

from typing import Dict

from tiktap.errors import InvalidTransitionError
from tiktap.schemas.job import JobStatus

# Pipeline states in execution order
PIPELINE_STATES = {
    JobStatus.QUEUED: "Initial state after job creation",
    JobStatus.GENERATING_SCRIPT: "Writing the script with the language model",
    JobStatus.GENERATING_VOICE: "Synthesizing the voiceover",
    JobStatus.FETCHING_FOOTAGE: "Sourcing stock footage",
    JobStatus.ASSEMBLING_VIDEO: "Rendering or muxing the final video",
    JobStatus.COMPLETED: "Pipeline finished successfully",
    JobStatus.FAILED: "Pipeline encountered unrecoverable error",
}

# State transitions for active pipeline steps
STEP_TRANSITIONS: Dict[JobStatus, JobStatus] = {
    JobStatus.QUEUED: JobStatus.GENERATING_SCRIPT,
    JobStatus.GENERATING_SCRIPT: JobStatus.GENERATING_VOICE,
    JobStatus.GENERATING_VOICE: JobStatus.FETCHING_FOOTAGE,
    JobStatus.FETCHING_FOOTAGE: JobStatus.ASSEMBLING_VIDEO,
    JobStatus.ASSEMBLING_VIDEO: JobStatus.COMPLETED,
}

TERMINAL_STATES = {JobStatus.COMPLETED, JobStatus.FAILED}

# Progress text shown to polling clients on entering each state
STATUS_MESSAGES: Dict[JobStatus, str] = {
    JobStatus.QUEUED: "Video job created...",
    JobStatus.GENERATING_SCRIPT: "AI is writing your script...",
    JobStatus.GENERATING_VOICE: "Creating AI voiceover...",
    JobStatus.FETCHING_FOOTAGE: "Finding perfect video clips...",
    JobStatus.ASSEMBLING_VIDEO: "Assembling your video...",
    JobStatus.COMPLETED: "Your video is ready!",
}

STAGE_ORDER = list(PIPELINE_STATES)


def is_terminal(status: JobStatus) -> bool:
    """Return True if no further transitions are allowed from status."""
    return status in TERMINAL_STATES


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    """Check whether a job may move from current to target.

    Staying in the same non-terminal state is allowed (artifact writes
    within a stage). Failure is reachable from every non-terminal state.
    """
    if is_terminal(current):
        return False
    if target == current or target == JobStatus.FAILED:
        return True
    return STEP_TRANSITIONS.get(current) == target


def validate_transition(current: JobStatus, target: JobStatus) -> None:
    """Raise InvalidTransitionError unless current -> target is allowed."""
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Invalid job transition: {current.value} -> {target.value}"
        )
