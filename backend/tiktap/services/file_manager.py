"""
File management service for tiktap.

Handles per-job artifact storage with path traversal protection.
Every job gets one directory holding its voiceover, footage and output.
"""
from pathlib import Path

from tiktap.config import settings

AUDIO_FILENAME = "audio.mp3"
FOOTAGE_FILENAME = "footage.mp4"
FINAL_FILENAME = "final.mp4"


class FileManager:
    """
    Manage filesystem artifacts for video jobs.

    Creates one directory per job:
    - {base_dir}/{job_id}/audio.mp3   - Synthesized voiceover
    - {base_dir}/{job_id}/footage.mp4 - Downloaded stock clip
    - {base_dir}/{job_id}/final.mp4   - Muxed output video

    The whole base directory is subject to the retention sweep.
    """

    def __init__(self, base_dir: str | Path | None = None):
        """
        Initialize FileManager with base directory.

        Args:
            base_dir: Root directory for all job artifacts.
                     If None, uses settings.storage.tmp_dir
        """
        if base_dir is None:
            base_dir = settings.storage.tmp_dir

        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def get_job_dir(self, job_id: str) -> Path:
        """
        Get or create the artifact directory for a job.

        Raises:
            ValueError: If job_id creates path outside base_dir (traversal attack)
        """
        job_dir = (self.base_dir / str(job_id)).resolve()

        if job_dir == self.base_dir or not job_dir.is_relative_to(self.base_dir):
            raise ValueError("Invalid job path")

        job_dir.mkdir(parents=True, exist_ok=True)
        return job_dir

    def save_audio(self, job_id: str, data: bytes) -> Path:
        """Write the voiceover MP3 for a job and return its path."""
        filepath = self.get_job_dir(job_id) / AUDIO_FILENAME
        filepath.write_bytes(data)
        return filepath

    def get_footage_path(self, job_id: str) -> Path:
        """Path the downloaded stock clip is streamed into."""
        return self.get_job_dir(job_id) / FOOTAGE_FILENAME

    def get_output_path(self, job_id: str, filename: str = FINAL_FILENAME) -> Path:
        """Path for the final muxed video."""
        return self.get_job_dir(job_id) / filename
