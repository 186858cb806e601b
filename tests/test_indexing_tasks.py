"""Tests for IndexingTaskManager and job progress helpers."""

import asyncio

import pytest

from profile_rag.models.indexing_job import (
    IndexingJob,
    IndexingJobUpdate,
    JobStatus,
    apply_job_update,
    compute_progress,
)
from profile_rag.workers.indexing_tasks import IndexingTaskManager


@pytest.mark.parametrize(
    "processed,total,expected",
    [(0, 0, 0), (0, 3, 0), (1, 3, 33), (2, 3, 67), (3, 3, 100), (1, 2, 50), (5, 3, 100)],
)
def test_compute_progress(processed, total, expected):
    assert compute_progress(processed, total) == expected


def test_apply_job_update_keeps_processed_steps_monotonic():
    job = IndexingJob(profile_id="p-1", total_steps=4, processed_steps=3)
    updated = apply_job_update(job, IndexingJobUpdate(processed_steps=1, error=None))
    assert updated.processed_steps == 3
    assert updated.progress == 75


def test_terminal_statuses():
    assert not JobStatus.PENDING.is_terminal
    assert not JobStatus.PROCESSING.is_terminal
    assert JobStatus.COMPLETED.is_terminal
    assert JobStatus.FAILED.is_terminal
    assert JobStatus.CANCELLED.is_terminal


@pytest.mark.asyncio
async def test_submit_runs_and_forgets_task():
    manager = IndexingTaskManager()
    ran = []

    async def runner(token):
        ran.append(token.is_set())

    manager.submit("job-1", runner)
    assert manager.is_running("job-1")
    assert manager.running_jobs == 1

    await manager.wait("job-1", timeout=5)
    await asyncio.sleep(0)

    assert ran == [False]
    assert not manager.is_running("job-1")
    assert manager.request_cancel("job-1") is False


@pytest.mark.asyncio
async def test_duplicate_submit_is_rejected():
    manager = IndexingTaskManager()
    release = asyncio.Event()

    async def runner(token):
        await release.wait()

    manager.submit("job-1", runner)
    with pytest.raises(RuntimeError):
        manager.submit("job-1", runner)

    release.set()
    await manager.wait("job-1", timeout=5)


@pytest.mark.asyncio
async def test_request_cancel_sets_token():
    manager = IndexingTaskManager()
    started = asyncio.Event()
    observed = []

    async def runner(token):
        started.set()
        await token.wait()
        observed.append("cancelled")

    manager.submit("job-1", runner)
    await started.wait()
    assert manager.request_cancel("job-1") is True
    await manager.wait("job-1", timeout=5)

    assert observed == ["cancelled"]


@pytest.mark.asyncio
async def test_crashing_task_is_contained():
    manager = IndexingTaskManager()

    async def runner(token):
        raise RuntimeError("boom")

    manager.submit("job-1", runner)
    with pytest.raises(RuntimeError):
        await manager.wait("job-1", timeout=5)
    await asyncio.sleep(0)
    assert not manager.is_running("job-1")


@pytest.mark.asyncio
async def test_shutdown_cancels_running_tasks():
    manager = IndexingTaskManager()
    started = asyncio.Event()

    async def runner(token):
        started.set()
        await asyncio.sleep(60)

    task = manager.submit("job-1", runner)
    await started.wait()
    await manager.shutdown(timeout=5)

    assert task.cancelled()
    assert manager.running_jobs == 0


def test_profile_claims():
    manager = IndexingTaskManager()
    assert manager.claim_profile("p-1") is True
    assert manager.claim_profile("p-1") is False
    assert manager.claim_profile("p-2") is True

    manager.release_profile("p-1")
    assert not manager.is_profile_busy("p-1")
    assert manager.is_profile_busy("p-2")


@pytest.mark.asyncio
async def test_finished_job_releases_its_profile():
    manager = IndexingTaskManager()

    async def runner(token):
        await asyncio.sleep(0)

    assert manager.claim_profile("p-1")
    manager.submit("job-1", runner, profile_id="p-1")
    assert manager.is_profile_busy("p-1")

    await manager.wait("job-1", timeout=5)
    assert not manager.is_profile_busy("p-1")

    # The old task's done callback must not drop a newer claim
    assert manager.claim_profile("p-1")
    await asyncio.sleep(0)
    assert manager.is_profile_busy("p-1")


@pytest.mark.asyncio
async def test_task_cancelled_before_start_releases_profile():
    manager = IndexingTaskManager()

    async def runner(token):
        await asyncio.sleep(60)

    assert manager.claim_profile("p-1")
    task = manager.submit("job-1", runner, profile_id="p-1")
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    await asyncio.sleep(0)

    assert not manager.is_profile_busy("p-1")
