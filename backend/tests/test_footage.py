"""Tests for stock footage search, selection and download."""

import random

import httpx
import pytest

from tiktap.config import FootageSelection
from tiktap.errors import NotFoundError, ProviderError
from tiktap.services.footage import (
    DEFAULT_SCRIPT_QUERY,
    DEFAULT_SEARCH_QUERY,
    PexelsFootageSource,
    query_for_template,
    query_from_script,
)


def _video(video_id: int, duration: int, files: list[dict] | None = None) -> dict:
    if files is None:
        files = [
            {"quality": "sd", "width": 540, "height": 960, "link": f"https://cdn.example.com/{video_id}-sd.mp4"},
            {"quality": "hd", "width": 720, "height": 1280, "link": f"https://cdn.example.com/{video_id}-720.mp4"},
            {"quality": "hd", "width": 1080, "height": 1920, "link": f"https://cdn.example.com/{video_id}-1080.mp4"},
        ]
    return {"id": video_id, "duration": duration, "video_files": files}


SEARCH_RESULTS = {"videos": [_video(101, 8), _video(102, 25), _video(103, 40)]}


def _source(handler, file_manager=None, **kwargs) -> PexelsFootageSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PexelsFootageSource(api_key="px-test", file_manager=file_manager, client=client, **kwargs)


@pytest.mark.parametrize(
    "template, query",
    [("fitness", "workout gym"), ("Travel", "travel adventure"), ("unknown", DEFAULT_SEARCH_QUERY),
     (None, DEFAULT_SEARCH_QUERY)],
)
def test_query_for_template(template, query):
    assert query_for_template(template) == query


def test_query_from_script():
    assert query_from_script("Did you know sourdough starters contain wild yeast cultures") == \
        "sourdough starters contain"
    assert query_from_script("Go big or go home") == DEFAULT_SCRIPT_QUERY
    assert query_from_script(None) == DEFAULT_SCRIPT_QUERY


@pytest.mark.asyncio
async def test_search_clips_picks_best_rendition():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["params"] = dict(request.url.params)
        captured["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json=SEARCH_RESULTS)

    source = _source(handler)
    clips = await source.search_clips("workout gym")
    await source.aclose()

    assert captured["params"] == {"query": "workout gym", "per_page": "5", "orientation": "portrait"}
    assert captured["auth"] == "px-test"
    assert [c.id for c in clips] == [101, 102, 103]
    assert clips[0].url == "https://cdn.example.com/101-1080.mp4"
    assert (clips[0].width, clips[0].height) == (1080, 1920)
    assert clips[1].duration == 25


@pytest.mark.asyncio
async def test_search_without_hd_falls_back_to_first_file():
    files = [{"quality": "sd", "width": 360, "height": 640, "link": "https://cdn.example.com/sd.mp4"}]
    source = _source(lambda r: httpx.Response(200, json={"videos": [_video(7, 10, files)]}))

    clips = await source.search_clips("calm ocean")
    await source.aclose()

    assert clips[0].url == "https://cdn.example.com/sd.mp4"


@pytest.mark.asyncio
async def test_zero_results_is_not_found():
    source = _source(lambda r: httpx.Response(200, json={"videos": []}))

    with pytest.raises(NotFoundError, match="No video clips found for query 'zzzz'"):
        await source.search_clips("zzzz")
    await source.aclose()


@pytest.mark.asyncio
async def test_search_error_is_provider_error():
    source = _source(lambda r: httpx.Response(403, text="Forbidden"))

    with pytest.raises(ProviderError) as exc_info:
        await source.search_clips("workout gym")
    await source.aclose()
    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_download_prefers_clip_covering_voiceover(file_manager):
    downloads = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/videos/search":
            return httpx.Response(200, json=SEARCH_RESULTS)
        downloads.append(str(request.url))
        return httpx.Response(200, content=b"mp4-bytes" * 100)

    source = _source(handler, file_manager=file_manager, selection=FootageSelection.FIRST)
    path = await source.download_clip("workout gym", "job-1", min_duration=20)
    await source.aclose()

    # 101 is only 8s long, so the first clip at least 20s long wins
    assert downloads == ["https://cdn.example.com/102-1080.mp4"]
    assert path == file_manager.get_job_dir("job-1") / "footage.mp4"
    assert path.read_bytes() == b"mp4-bytes" * 100


@pytest.mark.asyncio
async def test_download_random_selection_uses_rng(file_manager):
    downloads = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/videos/search":
            return httpx.Response(200, json=SEARCH_RESULTS)
        downloads.append(str(request.url))
        return httpx.Response(200, content=b"mp4")

    rng = random.Random(0)
    expected = random.Random(0).choice(SEARCH_RESULTS["videos"])["id"]
    source = _source(handler, file_manager=file_manager, rng=rng)
    await source.download_clip("workout gym", "job-2")
    await source.aclose()

    assert downloads == [f"https://cdn.example.com/{expected}-1080.mp4"]


@pytest.mark.asyncio
async def test_download_falls_back_to_short_clips(file_manager):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/videos/search":
            return httpx.Response(200, json={"videos": [_video(201, 5)]})
        return httpx.Response(200, content=b"short")

    source = _source(handler, file_manager=file_manager, selection=FootageSelection.FIRST)
    path = await source.download_clip("rare", "job-3", min_duration=60)
    await source.aclose()

    assert path.read_bytes() == b"short"


@pytest.mark.asyncio
async def test_download_failure(file_manager):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/videos/search":
            return httpx.Response(200, json=SEARCH_RESULTS)
        return httpx.Response(404, text="gone")

    source = _source(handler, file_manager=file_manager)
    with pytest.raises(ProviderError, match="Pexels download error: gone"):
        await source.download_clip("workout gym", "job-4")
    await source.aclose()
