"""Main pipeline orchestrator with per-stage status tracking.

Drives one job through script -> voice -> footage -> assembly with:
- State machine transitions written to the job store on every stage
- Per-step timing and logging
- Failure isolation: any stage error ends the job in 'failed'
- Progress callback interface for CLI integration
- Fire-and-forget task spawning for the API
"""

import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from tiktap.config import AssemblyStrategy, FootageQuerySource
from tiktap.errors import ProviderError, TiktapError
from tiktap.orchestrator.state import STATUS_MESSAGES
from tiktap.schemas.job import Job, JobParams, JobStatus
from tiktap.services.footage import query_for_template, query_from_script
from tiktap.services.job_store import JobStore
from tiktap.services.providers import Providers

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]

# Strong references so running pipelines are not garbage collected
_background_tasks: set[asyncio.Task] = set()


def _enter_stage(
    store: JobStore,
    job_id: str,
    status: JobStatus,
    progress_callback: Optional[ProgressCallback],
) -> float:
    """Move the job into status and return the stage start time."""
    message = STATUS_MESSAGES[status]
    store.update(job_id, status=status, status_message=message)
    logger.info(f"Job {job_id}: {status.value}")
    if progress_callback:
        progress_callback(message)
    return time.monotonic()


def footage_query(job: Job, source: FootageQuerySource) -> str:
    """Derive the stock search query for a job."""
    if source == FootageQuerySource.SCRIPT:
        return query_from_script(job.generated_script)
    return query_for_template(job.template)


async def run_pipeline(
    job_id: str,
    store: JobStore,
    providers: Providers,
    progress_callback: Optional[ProgressCallback] = None,
) -> None:
    """Execute the full video generation pipeline for one job.

    Communicates only through job store updates. Every stage error is
    caught here, logged, and recorded as a terminal 'failed' status whose
    message carries the error text; nothing is retried and nothing is
    re-raised, so one job's failure never affects another.

    The local strategy writes the voiceover to disk and probes its exact
    duration before fetching footage; the remote strategy keeps audio in
    memory and never probes.

    Args:
        job_id: Id of a queued job in store
        store: Job store holding the job record
        providers: Adapters for each stage
        progress_callback: Optional callback for status updates (e.g., CLI progress display)
    """
    try:
        job = store.get(job_id)
    except TiktapError as e:
        logger.error(f"Cannot run pipeline for {job_id}: {e}")
        return

    local = providers.strategy == AssemblyStrategy.LOCAL
    logger.info(f"Starting pipeline for job {job_id} ({providers.strategy.value} assembly)")

    step_log: Dict[str, float] = {}
    pipeline_start = time.monotonic()

    try:
        # Step 1: Script
        step_start = _enter_stage(store, job_id, JobStatus.GENERATING_SCRIPT, progress_callback)
        script = await providers.script.generate(job.input_topic, job.duration)
        if not script or not script.strip():
            raise ProviderError("Script generator", "returned an empty script")
        job = store.update(job_id, generated_script=script)
        step_log["script"] = time.monotonic() - step_start

        # Step 2: Voiceover
        step_start = _enter_stage(store, job_id, JobStatus.GENERATING_VOICE, progress_callback)
        audio = await providers.voice.synthesize(script, job.voice)
        if local:
            audio_path = await asyncio.to_thread(providers.file_manager.save_audio, job_id, audio)
            job = store.update(job_id, audio_path=str(audio_path), has_audio=True)
            audio_duration = await providers.assembler.probe_duration(str(audio_path))
            job = store.update(job_id, audio_duration=audio_duration)
            logger.info(f"Job {job_id}: voiceover is {audio_duration:.2f}s")
        else:
            job = store.update(job_id, audio_bytes=audio, has_audio=True)
        step_log["voice"] = time.monotonic() - step_start

        # Step 3: Stock footage
        step_start = _enter_stage(store, job_id, JobStatus.FETCHING_FOOTAGE, progress_callback)
        query = footage_query(job, providers.footage_query_source)
        if local:
            footage_path = await providers.footage.download_clip(
                query, job_id, min_duration=job.audio_duration,
            )
            job = store.update(job_id, footage_path=str(footage_path))
        else:
            clips = await providers.footage.search_clips(query)
            job = store.update(job_id, clips=clips)
        step_log["footage"] = time.monotonic() - step_start

        # Step 4: Assembly
        step_start = _enter_stage(store, job_id, JobStatus.ASSEMBLING_VIDEO, progress_callback)
        result = await providers.assembler.assemble(job)
        if local:
            artifact = {"final_path": result, "video_url": f"/api/videos/{job_id}/download"}
        else:
            artifact = {"video_url": result}
        step_log["assembly"] = time.monotonic() - step_start

        store.update(
            job_id,
            status=JobStatus.COMPLETED,
            status_message=STATUS_MESSAGES[JobStatus.COMPLETED],
            **artifact,
        )
        if progress_callback:
            progress_callback(STATUS_MESSAGES[JobStatus.COMPLETED])

        total = time.monotonic() - pipeline_start
        timings = ", ".join(f"{name}={secs:.2f}s" for name, secs in step_log.items())
        logger.info(f"Job {job_id}: pipeline completed in {total:.2f}s ({timings})")

    except Exception as e:
        failed_at = store.get(job_id).status.value
        logger.error(f"Job {job_id}: pipeline failed at {failed_at}: {type(e).__name__}: {str(e)}")
        try:
            store.update(job_id, status=JobStatus.FAILED, status_message=f"Error: {e}")
        except TiktapError as update_err:
            logger.error(f"Job {job_id}: could not record failure: {update_err}")
        if progress_callback:
            progress_callback(f"Error: {e}")


def launch_pipeline(
    job_id: str,
    store: JobStore,
    providers: Providers,
    progress_callback: Optional[ProgressCallback] = None,
) -> asyncio.Task:
    """Start run_pipeline as a background task on the running event loop."""
    task = asyncio.create_task(
        run_pipeline(job_id, store, providers, progress_callback),
        name=f"pipeline-{job_id}",
    )
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


def submit_job(store: JobStore, params: JobParams, providers: Providers) -> Job:
    """Create a queued job and hand it to a background pipeline task.

    Returns immediately with the job snapshot in its initial state.
    """
    job = store.create(params)
    launch_pipeline(job.id, store, providers)
    return job
