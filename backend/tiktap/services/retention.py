"""Periodic cleanup of old job artifacts.

Deletes any file under the artifact directory whose modification time is
older than the configured age, regardless of job status. Job records are
left alone; the query surface reports swept artifacts as not found.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def sweep_expired_files(
    base_dir: Path,
    max_age_seconds: float,
    now: Optional[float] = None,
) -> list[Path]:
    """Delete files older than max_age_seconds and prune empty job dirs.

    A failure on one file is logged and the sweep moves on.

    Returns:
        Paths of the files that were removed.
    """
    base_dir = Path(base_dir)
    if not base_dir.is_dir():
        return []

    cutoff = (time.time() if now is None else now) - max_age_seconds
    removed: list[Path] = []

    for path in sorted(base_dir.rglob("*")):
        if not path.is_file():
            continue
        try:
            if path.stat().st_mtime < cutoff:
                path.unlink()
                removed.append(path)
                logger.info(f"Cleaned up: {path.relative_to(base_dir)}")
        except OSError as e:
            logger.warning(f"Error cleaning up {path}: {e}")

    # Deepest first so nested empties collapse
    for directory in sorted(
        (p for p in base_dir.rglob("*") if p.is_dir()),
        key=lambda p: len(p.parts),
        reverse=True,
    ):
        try:
            if not any(directory.iterdir()):
                directory.rmdir()
        except OSError as e:
            logger.warning(f"Error removing directory {directory}: {e}")

    return removed


async def run_retention_loop(
    base_dir: Path,
    interval_seconds: float,
    max_age_seconds: float,
) -> None:
    """Sweep base_dir every interval_seconds until cancelled."""
    logger.info(
        f"Retention sweeper started for {base_dir} "
        f"(every {interval_seconds}s, max age {max_age_seconds}s)"
    )
    while True:
        await asyncio.sleep(interval_seconds)
        removed = await asyncio.to_thread(sweep_expired_files, base_dir, max_age_seconds)
        if removed:
            logger.info(f"Retention sweep removed {len(removed)} file(s)")
