"""TIKTAP - prompt-to-short-video generation pipeline.

This module provides startup validation functions to ensure the media
tools needed by local assembly are available before any job runs.
Call validate_dependencies() during application startup.
"""

import logging
import subprocess

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def validate_dependencies(tools: tuple[str, ...] = ("ffmpeg", "ffprobe")) -> None:
    """Validate required system dependencies are available.

    Only the local-mux assembly strategy shells out to ffmpeg/ffprobe, so
    callers skip this check when rendering remotely.

    Raises:
        RuntimeError: If a tool is not found or not functional.
    """
    for tool in tools:
        try:
            result = subprocess.run(
                [tool, "-version"],
                capture_output=True,
                check=True,
                text=True
            )
            version_line = result.stdout.split('\n')[0]
            logger.info(f"{tool} validated: {version_line}")
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            raise RuntimeError(
                f"{tool} not found on PATH. Install ffmpeg to use local video assembly.\n"
                "Ubuntu/Debian: sudo apt-get install ffmpeg\n"
                "macOS: brew install ffmpeg\n"
                "Windows: https://ffmpeg.org/download.html"
            ) from e
