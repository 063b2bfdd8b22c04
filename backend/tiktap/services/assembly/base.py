"""Abstract base class for final video assembly strategies."""

from abc import ABC, abstractmethod
from typing import ClassVar

from tiktap.config import AssemblyStrategy
from tiktap.schemas.job import Job


class VideoAssembler(ABC):
    """Turns a job's voiceover and footage into one playable video.

    Implementations declare which strategy they are, because the
    orchestrator shapes the earlier stages around it: remote assembly
    consumes clip descriptors and in-memory audio, local assembly consumes
    files on disk plus a probed audio duration.
    """

    strategy: ClassVar[AssemblyStrategy]

    @abstractmethod
    async def assemble(self, job: Job) -> str:
        """Assemble the final video for job.

        Returns:
            A hosted URL (remote) or a local file path (local).
        """
        ...

    async def probe_duration(self, path: str) -> float:
        """Return the duration in seconds of a media file.

        Only the local strategy needs this; remote assemblers never probe.
        """
        raise NotImplementedError(f"{type(self).__name__} does not probe media")

    async def aclose(self) -> None:
        """Release any network resources held by the assembler."""
