"""Recurring background jobs."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecurringJob:
    """A coroutine function run every ``interval_seconds``."""

    name: str
    interval_seconds: float
    func: Callable[[], Awaitable[Any]]
    run_immediately: bool = False


class Scheduler:
    """
    Owns the tasks of recurring jobs.

    A failing run is logged and the job keeps its cadence. ``stop()``
    cancels every task and waits for them to finish.
    """

    def __init__(self) -> None:
        self._jobs: list[RecurringJob] = []
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def jobs(self) -> list[RecurringJob]:
        return list(self._jobs)

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def add_job(
        self,
        name: str,
        interval_seconds: float,
        func: Callable[[], Awaitable[Any]],
        run_immediately: bool = False,
    ) -> RecurringJob:
        """Register a job; it runs once the scheduler is started."""
        if interval_seconds <= 0:
            raise ValueError(f"Job interval must be positive: {interval_seconds}")
        job = RecurringJob(name, interval_seconds, func, run_immediately)
        self._jobs.append(job)
        return job

    def start(self) -> None:
        if self.is_running:
            return
        self._tasks = [
            asyncio.create_task(self._run(job), name=f"job-{job.name}") for job in self._jobs
        ]
        logger.debug(f"Scheduler started with {len(self._tasks)} jobs")

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self, job: RecurringJob) -> None:
        if not job.run_immediately:
            await asyncio.sleep(job.interval_seconds)
        while True:
            try:
                await job.func()
            except Exception:
                logger.exception(f"Scheduled job {job.name} failed")
            await asyncio.sleep(job.interval_seconds)
