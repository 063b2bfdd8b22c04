"""Remote assembly through the Shotstack render API.

Submits a vertical timeline built from stock clip URLs, then polls the
render until it reaches a terminal status or the attempt budget runs out.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from tiktap.config import AssemblyStrategy
from tiktap.errors import NotFoundError, ProviderError, RenderFailedError, RenderTimeoutError
from tiktap.schemas.job import ClipDescriptor, Job
from tiktap.services.assembly.base import VideoAssembler

logger = logging.getLogger(__name__)

RENDER_DONE = "done"
RENDER_FAILED = "failed"


def build_render_payload(
    clips: list[ClipDescriptor],
    *,
    max_clips: int = 3,
    clip_length: int = 10,
    width: int = 1080,
    height: int = 1920,
    soundtrack_url: Optional[str] = None,
) -> dict:
    """Build the Shotstack edit JSON for a back-to-back clip timeline."""
    video_clips = [
        {
            "asset": {"type": "video", "src": clip.url, "trim": 0},
            "start": index * clip_length,
            "length": clip_length,
            "fit": "cover",
        }
        for index, clip in enumerate(clips[:max_clips])
    ]
    timeline: dict = {"tracks": [{"clips": video_clips}]}
    if soundtrack_url:
        timeline["soundtrack"] = {"src": soundtrack_url, "effect": "fadeOut"}

    return {
        "timeline": timeline,
        "output": {
            "format": "mp4",
            "size": {"width": width, "height": height},
        },
    }


class ShotstackAssembler(VideoAssembler):
    """Render-farm assembly: submit once, poll at a fixed interval."""

    strategy = AssemblyStrategy.REMOTE

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.shotstack.io/stage",
        poll_interval: float = 2.0,
        poll_max: int = 60,
        max_clips: int = 3,
        clip_length: int = 10,
        width: int = 1080,
        height: int = 1920,
        public_base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        timeout: httpx.Timeout = httpx.Timeout(120.0, connect=30.0),
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.poll_interval = poll_interval
        self.poll_max = poll_max
        self.max_clips = max_clips
        self.clip_length = clip_length
        self.width = width
        self.height = height
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self._api_key = api_key
        self._sleep = sleep
        self._timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    @property
    def _headers(self) -> dict:
        return {"x-api-key": self._api_key}

    async def submit_render(self, payload: dict) -> str:
        """Queue a render and return its id."""
        logger.info("POST %s/render", self.base_url)
        response = await self.client.post(
            f"{self.base_url}/render", json=payload, headers=self._headers,
        )
        if response.status_code >= 400:
            raise ProviderError("Shotstack render", response.text, response.status_code)
        render_id = response.json()["response"]["id"]
        logger.info(f"  render queued: id={render_id}")
        return render_id

    async def get_render_status(self, render_id: str) -> dict:
        """Fetch the render's status block ({status, url, error, ...})."""
        response = await self.client.get(
            f"{self.base_url}/render/{render_id}", headers=self._headers,
        )
        if response.status_code >= 400:
            raise ProviderError("Shotstack status", response.text, response.status_code)
        return response.json().get("response") or {}

    async def wait_for_render(self, render_id: str) -> str:
        """Poll until the render is done and return the hosted video URL.

        Sleeps poll_interval before every status check, for at most
        poll_max checks.

        Raises:
            RenderFailedError: If the render reports failure.
            RenderTimeoutError: If no terminal status arrives in time.
        """
        retrying = AsyncRetrying(
            sleep=self._sleep,
            stop=stop_after_attempt(self.poll_max),
            wait=wait_fixed(self.poll_interval),
            retry=retry_if_result(
                lambda status: status.get("status") not in (RENDER_DONE, RENDER_FAILED)
            ),
            before_sleep=before_sleep_log(logger, logging.DEBUG),
        )

        await self._sleep(self.poll_interval)
        try:
            status = await retrying(self.get_render_status, render_id)
        except RetryError as e:
            raise RenderTimeoutError(
                f"Video rendering timed out after {self.poll_max} status checks "
                f"({self.poll_max * self.poll_interval:.0f}s)"
            ) from e

        if status.get("status") == RENDER_FAILED:
            detail = status.get("error")
            raise RenderFailedError(
                f"Video rendering failed: {detail}" if detail else "Video rendering failed"
            )
        return status["url"]

    async def assemble(self, job: Job) -> str:
        if not job.clips:
            raise NotFoundError("No video clips found")

        soundtrack_url = None
        if self.public_base_url and job.has_audio:
            soundtrack_url = f"{self.public_base_url}/api/videos/{job.id}/audio"

        payload = build_render_payload(
            job.clips,
            max_clips=self.max_clips,
            clip_length=self.clip_length,
            width=self.width,
            height=self.height,
            soundtrack_url=soundtrack_url,
        )
        render_id = await self.submit_render(payload)
        url = await self.wait_for_render(render_id)
        logger.info(f"Job {job.id}: render {render_id} done -> {url}")
        return url

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
