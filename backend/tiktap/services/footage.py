"""Stock footage adapters.

Two ways to source visuals, matching the two assembly strategies:
- search_clips(): lightweight clip descriptors for the remote renderer
- download_clip(): pick one clip and stream it to local storage for ffmpeg
"""

import logging
import random
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import httpx

from tiktap.config import FootageSelection
from tiktap.errors import NotFoundError, ProviderError
from tiktap.schemas.job import ClipDescriptor
from tiktap.services.file_manager import FileManager

logger = logging.getLogger(__name__)

# Template/category -> stock search query
SEARCH_TERMS: dict[str, str] = {
    "motivational": "motivation success",
    "educational": "learning study",
    "lifestyle": "lifestyle luxury",
    "fitness": "workout gym",
    "business": "business office",
    "travel": "travel adventure",
}
DEFAULT_SEARCH_QUERY = "aesthetic cinematic"
DEFAULT_SCRIPT_QUERY = "business technology"


def query_for_template(template: Optional[str]) -> str:
    """Map a template name to its search query, with a generic fallback."""
    return SEARCH_TERMS.get((template or "").strip().lower(), DEFAULT_SEARCH_QUERY)


def query_from_script(script: Optional[str], max_words: int = 3) -> str:
    """Build a search query from the first few long words of a script."""
    words = [w for w in (script or "").split() if len(w) > 5]
    return " ".join(words[:max_words]) or DEFAULT_SCRIPT_QUERY


class FootageSource(ABC):
    """Abstract base class for stock footage providers."""

    @abstractmethod
    async def search_clips(self, query: str, count: Optional[int] = None) -> list[ClipDescriptor]:
        """Return clip descriptors matching query.

        Raises:
            NotFoundError: If the provider returns zero results.
            ProviderError: If the provider returns a non-success response.
        """
        ...

    @abstractmethod
    async def download_clip(
        self,
        query: str,
        job_id: str,
        min_duration: Optional[float] = None,
    ) -> Path:
        """Select one clip matching query and download it for job_id.

        Raises:
            NotFoundError: If the provider returns zero results.
            ProviderError: If the search or download fails.
        """
        ...

    async def aclose(self) -> None:
        """Release any network resources held by the adapter."""


def _best_file(video: dict) -> Optional[dict]:
    """Pick the highest-resolution HD rendition, else the first file listed."""
    files = [f for f in video.get("video_files") or [] if f.get("link")]
    if not files:
        return None
    hd = [f for f in files if f.get("quality") == "hd"]
    if hd:
        return max(hd, key=lambda f: (f.get("height") or 0) * (f.get("width") or 0))
    return files[0]


class PexelsFootageSource(FootageSource):
    """Portrait stock video search and download through the Pexels API."""

    def __init__(
        self,
        api_key: str,
        file_manager: Optional[FileManager] = None,
        base_url: str = "https://api.pexels.com",
        per_page: int = 5,
        orientation: str = "portrait",
        selection: FootageSelection = FootageSelection.RANDOM,
        rng: Optional[random.Random] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: httpx.Timeout = httpx.Timeout(120.0, connect=30.0),
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.per_page = per_page
        self.orientation = orientation
        self.selection = FootageSelection(selection)
        self._file_manager = file_manager
        self._rng = rng or random.Random()
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self._client

    @property
    def file_manager(self) -> FileManager:
        if self._file_manager is None:
            self._file_manager = FileManager()
        return self._file_manager

    async def _search(self, query: str, count: Optional[int] = None) -> list[dict]:
        params = {
            "query": query,
            "per_page": count or self.per_page,
            "orientation": self.orientation,
        }
        logger.info("GET %s/videos/search query=%r", self.base_url, query)
        response = await self.client.get(
            f"{self.base_url}/videos/search",
            params=params,
            headers={"Authorization": self._api_key},
        )
        if response.status_code >= 400:
            raise ProviderError("Pexels", response.text, response.status_code)

        videos = response.json().get("videos") or []
        if not videos:
            raise NotFoundError(f"No video clips found for query '{query}'")
        return videos

    async def search_clips(self, query: str, count: Optional[int] = None) -> list[ClipDescriptor]:
        videos = await self._search(query, count)
        clips = []
        for video in videos:
            best = _best_file(video)
            if best is None:
                continue
            clips.append(ClipDescriptor(
                id=video["id"],
                url=best["link"],
                duration=video.get("duration") or 0,
                width=best.get("width"),
                height=best.get("height"),
            ))
        if not clips:
            raise NotFoundError(f"No video clips found for query '{query}'")
        logger.info(f"  found {len(clips)} clip(s)")
        return clips

    def _select(self, videos: list[dict], min_duration: Optional[float]) -> dict:
        candidates = videos
        if min_duration:
            long_enough = [v for v in videos if (v.get("duration") or 0) >= min_duration]
            # Shorter clips still work; local assembly loops them
            candidates = long_enough or videos
        if self.selection == FootageSelection.FIRST:
            return candidates[0]
        return self._rng.choice(candidates)

    async def download_clip(
        self,
        query: str,
        job_id: str,
        min_duration: Optional[float] = None,
    ) -> Path:
        videos = await self._search(query)
        playable = [v for v in videos if _best_file(v) is not None]
        if not playable:
            raise NotFoundError(f"No video clips found for query '{query}'")

        video = self._select(playable, min_duration)
        video_file = _best_file(video)
        dest = self.file_manager.get_footage_path(job_id)

        logger.info(
            f"Job {job_id}: downloading clip {video.get('id')} "
            f"({video_file.get('quality')}, {video.get('duration')}s)"
        )
        async with self.client.stream("GET", video_file["link"]) as response:
            if response.status_code >= 400:
                body = (await response.aread()).decode(errors="replace")
                raise ProviderError("Pexels download", body, response.status_code)
            with open(dest, "wb") as f:
                async for chunk in response.aiter_bytes():
                    f.write(chunk)

        return dest

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
