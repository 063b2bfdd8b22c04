"""Local assembly: mux voiceover and stock footage with ffmpeg.

The footage is looped indefinitely and the output is cut to the exact
voiceover length, so a short clip still covers the whole script. Output is
re-encoded to H.264/AAC with the moov atom up front for progressive playback.
"""

import asyncio
import logging
import subprocess
from pathlib import Path
from typing import Optional

from tiktap.config import AssemblyStrategy
from tiktap.errors import AssemblyError
from tiktap.schemas.job import Job
from tiktap.services.assembly.base import VideoAssembler
from tiktap.services.file_manager import FileManager

logger = logging.getLogger(__name__)


def build_probe_command(media_path: Path, ffprobe: str = "ffprobe") -> list[str]:
    return [
        ffprobe,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(media_path),
    ]


def build_mux_command(
    video_path: Path,
    audio_path: Path,
    output_path: Path,
    duration: float,
    ffmpeg: str = "ffmpeg",
) -> list[str]:
    """Build the ffmpeg invocation that loops video under audio.

    -stream_loop -1: repeat the footage for as long as needed
    -t / -shortest:  stop at the voiceover's length
    +faststart:      metadata first so browsers can start playing early
    """
    return [
        ffmpeg,
        "-y",
        "-stream_loop", "-1",
        "-i", str(video_path),
        "-i", str(audio_path),
        "-t", f"{duration:.3f}",
        "-c:v", "libx264", "-preset", "fast", "-crf", "23",
        "-c:a", "aac", "-b:a", "128k",
        "-map", "0:v:0", "-map", "1:a:0",
        "-shortest",
        "-movflags", "+faststart",
        str(output_path),
    ]


class FFmpegAssembler(VideoAssembler):
    """Muxes a job's audio file and footage file into final.mp4."""

    strategy = AssemblyStrategy.LOCAL

    def __init__(
        self,
        file_manager: Optional[FileManager] = None,
        default_duration: float = 30.0,
        ffmpeg: str = "ffmpeg",
        ffprobe: str = "ffprobe",
    ) -> None:
        self._file_manager = file_manager
        self.default_duration = default_duration
        self.ffmpeg = ffmpeg
        self.ffprobe = ffprobe

    @property
    def file_manager(self) -> FileManager:
        if self._file_manager is None:
            self._file_manager = FileManager()
        return self._file_manager

    async def probe_duration(self, path: str) -> float:
        """Measure a media file's duration with ffprobe.

        Falls back to default_duration (with a warning) when ffprobe fails
        or reports something unparseable, so a probe hiccup does not sink
        an otherwise healthy job.
        """
        try:
            result = await asyncio.to_thread(
                subprocess.run,
                build_probe_command(Path(path), self.ffprobe),
                check=True,
                capture_output=True,
                text=True,
            )
            duration = float(result.stdout.strip())
            if duration <= 0:
                raise ValueError(f"non-positive duration {duration}")
            return duration
        except (subprocess.CalledProcessError, FileNotFoundError, ValueError) as e:
            logger.warning(
                f"Could not probe duration of {path} ({type(e).__name__}: {e}); "
                f"using {self.default_duration}s"
            )
            return self.default_duration

    async def assemble(self, job: Job) -> str:
        if not job.audio_path or not job.footage_path:
            raise AssemblyError("Audio and footage files are required for local assembly")

        duration = job.audio_duration or await self.probe_duration(job.audio_path)
        output_path = self.file_manager.get_output_path(job.id)
        cmd = build_mux_command(
            Path(job.footage_path), Path(job.audio_path), output_path, duration, self.ffmpeg,
        )

        logger.info(f"Job {job.id}: muxing {duration:.2f}s of video -> {output_path}")
        try:
            await asyncio.to_thread(subprocess.run, cmd, check=True, capture_output=True)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode(errors="replace") if e.stderr else "No error output"
            logger.error(f"Job {job.id}: ffmpeg error: {stderr}")
            raise AssemblyError(f"Failed to combine audio and video: {stderr[-500:]}") from e
        except FileNotFoundError as e:
            raise AssemblyError(f"Failed to combine audio and video: {self.ffmpeg} not found") from e

        return str(output_path)
