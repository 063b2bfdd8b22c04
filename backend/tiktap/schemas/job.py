"""Pydantic schemas for video jobs and the artifacts they produce.

Jobs serialize with camelCase aliases (statusMessage, hasAudio, videoUrl)
because that is what polling clients read.
"""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    QUEUED = "queued"
    GENERATING_SCRIPT = "generating_script"
    GENERATING_VOICE = "generating_voice"
    FETCHING_FOOTAGE = "fetching_footage"
    ASSEMBLING_VIDEO = "assembling_video"
    COMPLETED = "completed"
    FAILED = "failed"


class ClipDescriptor(BaseModel):
    """Lightweight reference to one stock clip hosted by the footage provider."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int | str
    url: str
    duration: float = 0.0
    width: Optional[int] = None
    height: Optional[int] = None


class JobParams(BaseModel):
    """Immutable request parameters captured at job creation."""

    input_topic: str = Field(min_length=1)
    template: Optional[str] = None
    voice: Optional[str] = None
    duration: Optional[str] = None


class Job(BaseModel):
    """One end-to-end video generation request and its tracked progress."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    id: str
    status: JobStatus = JobStatus.QUEUED
    status_message: str = "Video job created..."

    input_topic: str
    template: Optional[str] = None
    voice: Optional[str] = None
    duration: Optional[str] = None

    generated_script: Optional[str] = None

    # Voice stage: remote strategy keeps the buffer, local strategy the file
    audio_bytes: Optional[bytes] = Field(default=None, exclude=True, repr=False)
    audio_path: Optional[str] = None
    has_audio: bool = False
    audio_duration: Optional[float] = None

    # Footage stage
    clips: list[ClipDescriptor] = Field(default_factory=list)
    footage_path: Optional[str] = None

    # Assembly stage
    video_url: Optional[str] = None
    final_path: Optional[str] = None

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)

    def status_view(self) -> dict:
        """Return the JSON-safe status payload (never includes audio bytes)."""
        return self.model_dump(mode="json", by_alias=True)


class FinalArtifact(BaseModel):
    """Where the assembled video lives: a hosted URL or a local file."""

    url: Optional[str] = None
    path: Optional[Path] = None
