"""API route handlers and Pydantic request/response schemas."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, RedirectResponse, Response
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from tiktap import __version__
from tiktap.errors import NotFoundError
from tiktap.orchestrator.pipeline import submit_job
from tiktap.schemas.job import JobParams
from tiktap.services.job_store import JobStore, job_store
from tiktap.services.providers import Providers

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Pydantic Schemas
# ============================================================================

class CreateVideoRequest(BaseModel):
    """Request schema for POST /api/videos/create.

    `script` is the topic/prompt the language model writes about.
    """
    script: str = Field(min_length=1)
    template: Optional[str] = None
    voice: Optional[str] = "female_1"
    duration: Optional[str] = "30"

    @field_validator("duration", mode="before")
    @classmethod
    def coerce_duration(cls, v):
        """Accept numeric durations (30) as well as bucket names ("30s", "short")."""
        if isinstance(v, (int, float)):
            return str(int(v))
        return v


class CreateVideoResponse(BaseModel):
    """Response schema for POST /api/videos/create."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    job_id: str
    status: str


# ============================================================================
# Dependencies
# ============================================================================

def get_job_store() -> JobStore:
    return job_store


def get_providers(request: Request) -> Providers:
    return request.app.state.providers


# ============================================================================
# Endpoint Handlers
# ============================================================================

@router.get("/")
async def root():
    return {"status": "TIKTAP.AI API is running"}


@router.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": __version__,
    }


@router.post("/api/videos/create", response_model=CreateVideoResponse, response_model_by_alias=True)
async def create_video(
    request: CreateVideoRequest,
    store: JobStore = Depends(get_job_store),
    providers: Providers = Depends(get_providers),
):
    """Queue a video job and start its pipeline in the background.

    Returns as soon as the job is registered; poll the status endpoint
    for progress.
    """
    params = JobParams(
        input_topic=request.script,
        template=request.template,
        voice=request.voice,
        duration=request.duration,
    )
    job = submit_job(store, params, providers)
    return CreateVideoResponse(job_id=job.id, status=job.status.value)


@router.get("/api/videos")
async def list_videos(store: JobStore = Depends(get_job_store)):
    """List all jobs known to this process, newest first."""
    return [job.status_view() for job in store.list_jobs()]


@router.get("/api/videos/{job_id}/status")
async def get_video_status(job_id: str, store: JobStore = Depends(get_job_store)):
    """Get job status for polling (never includes the audio buffer)."""
    try:
        return store.get_status(job_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/api/videos/{job_id}/audio")
async def get_video_audio(job_id: str, store: JobStore = Depends(get_job_store)):
    """Stream the synthesized voiceover as MP3."""
    try:
        audio = store.get_audio(job_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return Response(content=audio, media_type="audio/mpeg")


@router.get("/api/videos/{job_id}/download")
async def download_video(job_id: str, store: JobStore = Depends(get_job_store)):
    """Download the final MP4, or redirect to the hosted render.

    Returns 404 if the job is unknown, not complete, or its file was swept.
    """
    try:
        artifact = store.get_final(job_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    if artifact.url:
        return RedirectResponse(artifact.url)

    return FileResponse(
        path=str(artifact.path),
        media_type="video/mp4",
        filename=f"tiktap-video-{job_id}.mp4",
    )
