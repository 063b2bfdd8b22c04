"""Tests for the in-memory job store and its query surface."""

import threading

import pytest
from pydantic import ValidationError

from tiktap.errors import InvalidTransitionError, NotFoundError
from tiktap.schemas.job import JobParams, JobStatus
from tiktap.services.job_store import JobStore


def _params(**overrides) -> JobParams:
    values = {"input_topic": "coffee brewing tips", "template": "lifestyle", "voice": "female_1", "duration": "30"}
    values.update(overrides)
    return JobParams(**values)


def _advance_to(store: JobStore, job_id: str, *statuses: JobStatus) -> None:
    for status in statuses:
        store.update(job_id, status=status)


def test_create_returns_queued_job_with_unique_id():
    store = JobStore()
    first = store.create(_params())
    second = store.create(_params())

    assert first.status == JobStatus.QUEUED
    assert first.status_message == "Video job created..."
    assert first.input_topic == "coffee brewing tips"
    assert first.id != second.id
    assert len(store) == 2


def test_empty_topic_rejected():
    with pytest.raises(ValidationError):
        JobParams(input_topic="")


def test_get_unknown_job_raises_not_found():
    store = JobStore()
    with pytest.raises(NotFoundError, match="Job not found"):
        store.get("missing")
    with pytest.raises(NotFoundError):
        store.get_status("missing")
    with pytest.raises(NotFoundError):
        store.update("missing", status=JobStatus.FAILED)


def test_snapshots_are_copies():
    store = JobStore()
    job = store.create(_params())
    job.generated_script = "mutated outside the store"

    assert store.get(job.id).generated_script is None


def test_update_follows_pipeline_order():
    store = JobStore()
    job = store.create(_params())
    before = store.get(job.id).updated_at

    updated = store.update(job.id, status=JobStatus.GENERATING_SCRIPT, status_message="AI is writing your script...")
    assert updated.status == JobStatus.GENERATING_SCRIPT
    assert updated.updated_at >= before

    with pytest.raises(InvalidTransitionError):
        store.update(job.id, status=JobStatus.QUEUED)
    with pytest.raises(InvalidTransitionError):
        store.update(job.id, status=JobStatus.ASSEMBLING_VIDEO)
    assert store.get(job.id).status == JobStatus.GENERATING_SCRIPT


@pytest.mark.parametrize("terminal", [JobStatus.COMPLETED, JobStatus.FAILED])
def test_terminal_job_rejects_updates(terminal):
    store = JobStore()
    job = store.create(_params())
    if terminal == JobStatus.COMPLETED:
        _advance_to(
            store, job.id,
            JobStatus.GENERATING_SCRIPT, JobStatus.GENERATING_VOICE,
            JobStatus.FETCHING_FOOTAGE, JobStatus.ASSEMBLING_VIDEO, JobStatus.COMPLETED,
        )
    else:
        store.update(job.id, status=JobStatus.FAILED, status_message="Error: boom")

    with pytest.raises(InvalidTransitionError):
        store.update(job.id, status_message="late write")
    with pytest.raises(InvalidTransitionError):
        store.update(job.id, status=JobStatus.FAILED)
    assert store.get(job.id).status == terminal


def test_invalid_field_leaves_job_untouched():
    store = JobStore()
    job = store.create(_params())
    with pytest.raises(ValidationError):
        store.update(job.id, status=JobStatus.GENERATING_SCRIPT, has_audio="not-a-bool")

    assert store.get(job.id).status == JobStatus.QUEUED


def test_status_view_is_camel_case_without_audio_bytes():
    store = JobStore()
    job = store.create(_params())
    _advance_to(store, job.id, JobStatus.GENERATING_SCRIPT, JobStatus.GENERATING_VOICE)
    store.update(job.id, audio_bytes=b"\x00\x01", has_audio=True)

    view = store.get_status(job.id)
    assert view["id"] == job.id
    assert view["status"] == "generating_voice"
    assert view["hasAudio"] is True
    assert "statusMessage" in view
    assert "audioBytes" not in view
    assert "audio_bytes" not in view


def test_get_audio_from_memory():
    store = JobStore()
    job = store.create(_params())
    with pytest.raises(NotFoundError, match="Audio not found"):
        store.get_audio(job.id)

    _advance_to(store, job.id, JobStatus.GENERATING_SCRIPT, JobStatus.GENERATING_VOICE)
    store.update(job.id, audio_bytes=b"mp3", has_audio=True)
    assert store.get_audio(job.id) == b"mp3"


def test_get_audio_from_disk_and_after_sweep(tmp_path):
    audio = tmp_path / "audio.mp3"
    audio.write_bytes(b"mp3-on-disk")
    store = JobStore()
    job = store.create(_params())
    _advance_to(store, job.id, JobStatus.GENERATING_SCRIPT, JobStatus.GENERATING_VOICE)
    store.update(job.id, audio_path=str(audio), has_audio=True)

    assert store.get_audio(job.id) == b"mp3-on-disk"

    audio.unlink()
    with pytest.raises(NotFoundError, match="Audio not found"):
        store.get_audio(job.id)


def test_get_final_requires_completion(tmp_path):
    final = tmp_path / "final.mp4"
    final.write_bytes(b"mp4")
    store = JobStore()
    job = store.create(_params())

    with pytest.raises(NotFoundError, match="Video not ready"):
        store.get_final(job.id)

    _advance_to(
        store, job.id,
        JobStatus.GENERATING_SCRIPT, JobStatus.GENERATING_VOICE,
        JobStatus.FETCHING_FOOTAGE, JobStatus.ASSEMBLING_VIDEO,
    )
    store.update(job.id, status=JobStatus.COMPLETED, final_path=str(final))

    artifact = store.get_final(job.id)
    assert artifact.path == final
    assert artifact.url is None

    final.unlink()
    with pytest.raises(NotFoundError, match="Video not found"):
        store.get_final(job.id)


def test_get_final_remote_url():
    store = JobStore()
    job = store.create(_params())
    _advance_to(
        store, job.id,
        JobStatus.GENERATING_SCRIPT, JobStatus.GENERATING_VOICE,
        JobStatus.FETCHING_FOOTAGE, JobStatus.ASSEMBLING_VIDEO,
    )
    store.update(job.id, status=JobStatus.COMPLETED, video_url="https://cdn.example.com/v.mp4")

    assert store.get_final(job.id).url == "https://cdn.example.com/v.mp4"


def test_failed_job_has_no_final_video():
    store = JobStore()
    job = store.create(_params())
    store.update(job.id, status=JobStatus.FAILED, status_message="Error: boom")
    with pytest.raises(NotFoundError, match="Video not ready"):
        store.get_final(job.id)


def test_list_jobs_newest_first_and_filtered():
    store = JobStore()
    older = store.create(_params(input_topic="first"))
    newer = store.create(_params(input_topic="second"))
    store.update(older.id, status=JobStatus.FAILED)

    jobs = store.list_jobs()
    assert {j.id for j in jobs} == {older.id, newer.id}
    assert jobs[0].created_at >= jobs[1].created_at
    assert [j.id for j in store.list_jobs(JobStatus.FAILED)] == [older.id]


def test_concurrent_updates_are_serialized():
    store = JobStore()
    jobs = [store.create(_params(input_topic=f"topic {i}")) for i in range(20)]

    def drive(job_id: str) -> None:
        _advance_to(
            store, job_id,
            JobStatus.GENERATING_SCRIPT, JobStatus.GENERATING_VOICE,
            JobStatus.FETCHING_FOOTAGE, JobStatus.ASSEMBLING_VIDEO, JobStatus.COMPLETED,
        )

    threads = [threading.Thread(target=drive, args=(job.id,)) for job in jobs]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert all(j.status == JobStatus.COMPLETED for j in store.list_jobs())
