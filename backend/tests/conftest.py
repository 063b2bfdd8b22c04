"""Shared fakes and fixtures for pipeline tests.

The fake adapters implement the same abstract interfaces as the real
providers, record their calls, and can be told to fail or to block on an
asyncio.Event so tests can observe intermediate job states.
"""

import asyncio
from collections import defaultdict
from pathlib import Path
from typing import Optional

import pytest

from tiktap.config import AssemblyStrategy
from tiktap.schemas.job import ClipDescriptor, Job, JobStatus
from tiktap.services.assembly.base import VideoAssembler
from tiktap.services.file_manager import FileManager
from tiktap.services.footage import FootageSource
from tiktap.services.job_store import JobStore
from tiktap.services.providers import Providers
from tiktap.services.script.base import ScriptGenerator
from tiktap.services.voice import VoiceSynthesizer

FAKE_SCRIPT = (
    "Stop pouring boiling water on your coffee. Brewing at ninety degrees "
    "keeps the bitterness away and the sweetness in."
)
FAKE_AUDIO = b"ID3\x03\x00fake-mp3-frames"
FAKE_RENDER_URL = "https://cdn.example.com/renders/abc123.mp4"


# ---------------------------------------------------------------------------
# Fake adapters
# ---------------------------------------------------------------------------

class FakeScriptGenerator(ScriptGenerator):
    def __init__(self, script: str = FAKE_SCRIPT, error: Optional[Exception] = None,
                 gate: Optional[asyncio.Event] = None):
        self.script = script
        self.error = error
        self.gate = gate
        self.calls: list[tuple[str, Optional[str]]] = []

    async def generate(self, topic, duration=None):
        self.calls.append((topic, duration))
        if self.gate is not None:
            await self.gate.wait()
        if self.error:
            raise self.error
        return self.script


class FakeVoiceSynthesizer(VoiceSynthesizer):
    def __init__(self, audio: bytes = FAKE_AUDIO, error: Optional[Exception] = None):
        self.audio = audio
        self.error = error
        self.calls: list[tuple[str, Optional[str]]] = []

    async def synthesize(self, text, voice=None):
        self.calls.append((text, voice))
        if self.error:
            raise self.error
        return self.audio


class FakeFootageSource(FootageSource):
    def __init__(self, file_manager: FileManager, error: Optional[Exception] = None):
        self.file_manager = file_manager
        self.error = error
        self.search_calls: list[str] = []
        self.download_calls: list[tuple[str, str, Optional[float]]] = []

    async def search_clips(self, query, count=None):
        self.search_calls.append(query)
        if self.error:
            raise self.error
        return [
            ClipDescriptor(id=1, url="https://videos.example.com/1.mp4", duration=12),
            ClipDescriptor(id=2, url="https://videos.example.com/2.mp4", duration=8),
        ]

    async def download_clip(self, query, job_id, min_duration=None):
        self.download_calls.append((query, job_id, min_duration))
        if self.error:
            raise self.error
        path = self.file_manager.get_footage_path(job_id)
        path.write_bytes(b"fake-mp4-footage")
        return path


class FakeAssembler(VideoAssembler):
    def __init__(self, strategy: AssemblyStrategy, file_manager: FileManager,
                 error: Optional[Exception] = None, duration: float = 12.5):
        self.strategy = strategy
        self.file_manager = file_manager
        self.error = error
        self.duration = duration
        self.assembled: list[Job] = []
        self.probed: list[str] = []

    async def probe_duration(self, path):
        self.probed.append(path)
        return self.duration

    async def assemble(self, job):
        self.assembled.append(job)
        if self.error:
            raise self.error
        if self.strategy == AssemblyStrategy.REMOTE:
            return FAKE_RENDER_URL
        output = self.file_manager.get_output_path(job.id)
        output.write_bytes(b"fake-final-mp4")
        return str(output)


class RecordingJobStore(JobStore):
    """JobStore that remembers every status a job passed through."""

    def __init__(self):
        super().__init__()
        self.history: dict[str, list[JobStatus]] = defaultdict(list)

    def update(self, job_id, **fields):
        job = super().update(job_id, **fields)
        if not self.history[job_id] or self.history[job_id][-1] != job.status:
            self.history[job_id].append(job.status)
        return job


async def wait_for_terminal(store: JobStore, job_id: str, timeout: float = 5.0) -> Job:
    """Poll the store the way an HTTP client would until the job finishes."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        job = store.get(job_id)
        if job.is_terminal:
            return job
        await asyncio.sleep(0.01)
    raise AssertionError(f"Job {job_id} did not finish within {timeout}s")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def file_manager(tmp_path: Path) -> FileManager:
    return FileManager(tmp_path / "artifacts")


@pytest.fixture
def store() -> RecordingJobStore:
    return RecordingJobStore()


@pytest.fixture
def make_providers(file_manager):
    """Factory for a Providers bundle built from fakes.

    Keyword overrides replace individual adapters, e.g.
    make_providers(AssemblyStrategy.REMOTE, footage=FakeFootageSource(fm, error=...)).
    """
    def _make(strategy: AssemblyStrategy = AssemblyStrategy.LOCAL, **overrides) -> Providers:
        adapters = {
            "script": FakeScriptGenerator(),
            "voice": FakeVoiceSynthesizer(),
            "footage": FakeFootageSource(file_manager),
            "assembler": FakeAssembler(strategy, file_manager),
        }
        adapters.update(overrides)
        return Providers(file_manager=file_manager, **adapters)

    return _make
