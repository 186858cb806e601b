"""Background task tracking for indexing jobs."""

import asyncio
from typing import Awaitable, Callable, Dict, Optional

from profile_rag.utils.logging import get_logger

logger = get_logger("indexing_tasks")

JobRunner = Callable[[asyncio.Event], Awaitable[None]]


class IndexingTaskManager:
    """
    Run indexing jobs as detached asyncio tasks.

    Each job gets a cancellation token (an asyncio.Event) that the job
    checks between resources. Tasks are held by strong reference until they
    finish so the event loop cannot garbage-collect them mid-run.

    A profile is claimed while one of its jobs is being created or run, so
    two jobs never rebuild the same profile at once.
    """

    def __init__(self) -> None:
        self._tasks: Dict[str, asyncio.Task] = {}
        self._tokens: Dict[str, asyncio.Event] = {}
        # profile_id -> owning job id (None while the job is being created)
        self._claimed_profiles: Dict[str, Optional[str]] = {}

    def claim_profile(self, profile_id: str) -> bool:
        """Reserve a profile for a new job. Returns False if it is already busy."""
        if profile_id in self._claimed_profiles:
            return False
        self._claimed_profiles[profile_id] = None
        return True

    def release_profile(self, profile_id: str) -> None:
        """Drop a claim that never got a job, e.g. when job creation failed."""
        self._claimed_profiles.pop(profile_id, None)

    def _release_claim(self, profile_id: str, job_id: str) -> None:
        if self._claimed_profiles.get(profile_id, "") == job_id:
            del self._claimed_profiles[profile_id]

    def is_profile_busy(self, profile_id: str) -> bool:
        return profile_id in self._claimed_profiles

    def submit(
        self, job_id: str, runner: JobRunner, profile_id: Optional[str] = None
    ) -> asyncio.Task:
        """
        Start `runner(token)` in the background for a job.

        When `profile_id` is given, the job takes over that profile's claim
        and releases it when it finishes.
        """
        if job_id in self._tasks:
            raise RuntimeError(f"Indexing job {job_id} is already running")

        token = asyncio.Event()
        task = asyncio.create_task(
            self._run(job_id, runner, token, profile_id), name=f"indexing-job-{job_id}"
        )
        self._tasks[job_id] = task
        self._tokens[job_id] = token
        if profile_id is not None:
            self._claimed_profiles[profile_id] = job_id
        task.add_done_callback(lambda t: self._on_done(job_id, profile_id, t))
        logger.debug(f"Indexing task submitted: job_id={job_id}")
        return task

    async def _run(
        self,
        job_id: str,
        runner: JobRunner,
        token: asyncio.Event,
        profile_id: Optional[str],
    ) -> None:
        try:
            await runner(token)
        finally:
            # Released before the task resolves so waiters can start a new job
            if profile_id is not None:
                self._release_claim(profile_id, job_id)

    def _on_done(self, job_id: str, profile_id: Optional[str], task: asyncio.Task) -> None:
        self._tasks.pop(job_id, None)
        self._tokens.pop(job_id, None)
        # A task cancelled before its first step never reaches _run's finally
        if profile_id is not None:
            self._release_claim(profile_id, job_id)
        if task.cancelled():
            logger.info(f"Indexing task cancelled: job_id={job_id}")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"Indexing task crashed: job_id={job_id} - {exc}",
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    def is_running(self, job_id: str) -> bool:
        return job_id in self._tasks

    @property
    def running_jobs(self) -> int:
        return len(self._tasks)

    def request_cancel(self, job_id: str) -> bool:
        """Set the job's cancellation token. Returns False if the job is not running."""
        token = self._tokens.get(job_id)
        if token is None:
            return False
        token.set()
        logger.info(f"Cancellation requested: job_id={job_id}")
        return True

    async def wait(self, job_id: str, timeout: Optional[float] = None) -> None:
        """Wait for a job's task to finish; returns immediately if it is not running."""
        task = self._tasks.get(job_id)
        if task is None:
            return
        await asyncio.wait_for(asyncio.shield(task), timeout=timeout)

    async def shutdown(self, timeout: float = 10.0) -> None:
        """Cancel every running job and wait for the tasks to unwind."""
        tasks = list(self._tasks.values())
        if not tasks:
            return

        logger.info(f"Shutting down indexing tasks: running={len(tasks)}")
        for token in self._tokens.values():
            token.set()
        for task in tasks:
            task.cancel()

        _, pending = await asyncio.wait(tasks, timeout=timeout)
        if pending:
            logger.warning(f"Indexing tasks still running after shutdown: count={len(pending)}")
