"""Runtime orchestration for locked jobs."""

from __future__ import annotations

import asyncio
from typing import Dict, List

from cachelock.utils.logging import get_logger

from .base import LockedJob


class JobRuntime:
    """Owns a set of jobs and starts or stops them together."""

    def __init__(self) -> None:
        self.logger = get_logger("JobRuntime")
        self._jobs: Dict[str, LockedJob] = {}
        self._started = False
        self._lock = asyncio.Lock()

    @property
    def started(self) -> bool:
        return self._started

    @property
    def jobs(self) -> List[LockedJob]:
        return list(self._jobs.values())

    def register(self, job: LockedJob) -> None:
        job_id = job.config.job_id
        if job_id in self._jobs:
            raise ValueError(f"Job {job_id!r} is already registered")
        self._jobs[job_id] = job

    async def start(self) -> None:
        async with self._lock:
            if self._started:
                return
            self.logger.info("Starting %d jobs", len(self._jobs))
            for job in self._jobs.values():
                await job.start()
            self._started = True

    async def stop(self) -> None:
        async with self._lock:
            if not self._started:
                return
            self.logger.info("Stopping jobs")
            results = await asyncio.gather(
                *(job.stop() for job in self._jobs.values()),
                return_exceptions=True,
            )
            for job, result in zip(self._jobs.values(), results):
                if isinstance(result, Exception):
                    self.logger.error("Job %s failed to stop cleanly: %s", job.config.job_id, result)
            self._started = False

    async def run_forever(self) -> None:
        """Convenience helper for long-running processes."""
        await self.start()
        self.logger.info("Job runtime is now running. Press Ctrl+C to exit.")
        try:
            while True:
                await asyncio.sleep(3600)
        finally:
            await self.stop()
