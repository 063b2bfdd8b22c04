"""In-memory job store and read-only query surface.

Jobs live for the lifetime of the process and are never evicted. Backing
files (audio, footage, final video) may be swept independently, in which
case the query methods report NotFoundError while the job metadata stays.
"""

import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from tiktap.errors import InvalidTransitionError, NotFoundError
from tiktap.orchestrator.state import validate_transition
from tiktap.schemas.job import FinalArtifact, Job, JobParams, JobStatus

logger = logging.getLogger(__name__)


class JobStore:
    """Thread-safe mapping from job id to job record.

    Every insert, lookup and update takes the same lock so the store can be
    shared between pipeline tasks, request handlers and worker threads.
    Readers receive copies; the only way to mutate a job is update().
    """

    def __init__(self) -> None:
        self._jobs: dict[str, Job] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, params: JobParams) -> Job:
        """Register a new job in the queued state and return a copy of it."""
        job = Job(
            id=str(uuid.uuid4()),
            input_topic=params.input_topic,
            template=params.template,
            voice=params.voice,
            duration=params.duration,
        )
        with self._lock:
            # uuid4 collisions are not expected, but ids must stay unique
            while job.id in self._jobs:
                job.id = str(uuid.uuid4())
            self._jobs[job.id] = job
            logger.info(f"Created job {job.id} for topic: {params.input_topic[:50]}")
            return job.model_copy(deep=True)

    def update(self, job_id: str, **fields) -> Job:
        """Apply fields to a job atomically.

        A status change must follow the pipeline order (or go to failed),
        and terminal jobs reject every write.

        Raises:
            NotFoundError: If the job does not exist.
            InvalidTransitionError: If the write breaks the state machine.
        """
        with self._lock:
            job = self._get_locked(job_id)
            if job.is_terminal:
                raise InvalidTransitionError(
                    f"Job {job_id} is {job.status.value}; no further updates allowed"
                )
            target = fields.get("status", job.status)
            validate_transition(job.status, JobStatus(target))

            # Assignment is validated, so a bad field leaves the stored job untouched
            updated = job.model_copy(deep=True)
            for name, value in fields.items():
                setattr(updated, name, value)
            updated.updated_at = datetime.now(timezone.utc)

            self._jobs[job_id] = updated
            return updated.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Query surface
    # ------------------------------------------------------------------

    def get(self, job_id: str) -> Job:
        """Return a snapshot of the job or raise NotFoundError."""
        with self._lock:
            return self._get_locked(job_id).model_copy(deep=True)

    def get_status(self, job_id: str) -> dict:
        """Return the job's status view, excluding binary payloads."""
        return self.get(job_id).status_view()

    def get_audio(self, job_id: str) -> bytes:
        """Return synthesized speech for the job.

        Raises:
            NotFoundError: If the job is unknown, has no audio yet, or its
                audio file was removed by the retention sweep.
        """
        job = self.get(job_id)
        if not job.has_audio:
            raise NotFoundError("Audio not found")
        if job.audio_bytes is not None:
            return job.audio_bytes
        if job.audio_path:
            path = Path(job.audio_path)
            try:
                return path.read_bytes()
            except FileNotFoundError:
                logger.info(f"Job {job_id}: audio file {path} no longer on disk")
        raise NotFoundError("Audio not found")

    def get_final(self, job_id: str) -> FinalArtifact:
        """Return the assembled video reference for a completed job.

        Raises:
            NotFoundError: If the job is unknown, not completed, or its
                output file no longer exists.
        """
        job = self.get(job_id)
        if job.status != JobStatus.COMPLETED:
            raise NotFoundError("Video not ready")
        if job.final_path:
            path = Path(job.final_path)
            if not path.exists():
                raise NotFoundError("Video not found")
            return FinalArtifact(path=path)
        if job.video_url:
            return FinalArtifact(url=job.video_url)
        raise NotFoundError("Video not found")

    def list_jobs(self, status: Optional[JobStatus] = None) -> list[Job]:
        """Return snapshots of all jobs, newest first."""
        with self._lock:
            jobs = [
                job.model_copy(deep=True)
                for job in self._jobs.values()
                if status is None or job.status == status
            ]
        return sorted(jobs, key=lambda j: j.created_at, reverse=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def _get_locked(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise NotFoundError("Job not found")
        return job


# Process-wide store used by the API and CLI
job_store = JobStore()
