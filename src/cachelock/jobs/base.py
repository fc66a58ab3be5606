"""Lock-guarded jobs scheduled by cron, delay or fixed interval."""

from __future__ import annotations

import abc
import asyncio
import datetime as dt
from typing import Callable, Optional

from cachelock.core.factory import LockFactory
from cachelock.core.locks import build_lock_key
from cachelock.core.models import JobConfig, JobTrigger, LockType
from cachelock.core.retry import EMPTY_RETRY_POLICY, RetryPolicy
from cachelock.utils.logging import get_logger


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class LockedJob(abc.ABC):
    """Abstract job with lifecycle helpers.

    Every tick takes a fresh global lock ``job:{job_id}``. Only the process
    that acquires it runs :meth:`execute`; the others skip the tick.
    """

    def __init__(
        self,
        config: JobConfig,
        *,
        lock_factory: LockFactory,
        retry_policy: Optional[RetryPolicy] = None,
        name: Optional[str] = None,
        clock: Callable[[], dt.datetime] = _utcnow,
    ) -> None:
        self.config = config
        self._lock_factory = lock_factory
        self._retry = retry_policy or EMPTY_RETRY_POLICY
        self._name = name or self.__class__.__name__
        self._clock = clock
        self.logger = get_logger(self._name)
        self._task: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()

    @property
    def lock_key(self) -> str:
        return build_lock_key(f"job:{self.config.job_id}", LockType.GLOBAL)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self.logger.info("Starting job %s", self.config.job_id)
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_wrapper(), name=f"{self._name}-{self.config.job_id}")

    async def stop(self) -> None:
        self.logger.info("Stopping job %s", self.config.job_id)
        self._stop_event.set()
        if self._task:
            await self._task
            self._task = None

    def should_stop(self) -> bool:
        return self._stop_event.is_set()

    async def run_once(self) -> bool:
        """Run a single tick. Returns True when this process executed the job."""
        lock = self._lock_factory()
        async with lock.hold(self.lock_key, self.config.lock_expiration) as acquired:
            if not acquired:
                self.logger.info("Job %s is running elsewhere; skipping", self.config.job_id)
                return False
            await self._retry.execute_async(self.execute)
            return True

    async def _run_wrapper(self) -> None:
        try:
            await self.setup()
            await self.run()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.logger.exception("Unhandled exception in job %s: %s", self.config.job_id, exc)
        finally:
            await self.teardown()

    async def run(self) -> None:
        """Drive ticks according to the configured trigger."""
        trigger = self.config.trigger
        if trigger is JobTrigger.ONCE:
            await self._tick()
        elif trigger is JobTrigger.DELAY:
            if not await self._wait(self.config.delay_seconds):
                await self._tick()
        elif trigger is JobTrigger.CRON:
            while not self.should_stop():
                now = self._clock()
                delay = (self.config.next_fire_time(now) - now).total_seconds()
                if await self._wait(max(delay, 0.0)):
                    break
                await self._tick()
        else:
            while not self.should_stop():
                await self._tick()
                if await self._wait(self.config.interval_seconds):
                    break

    async def _tick(self) -> None:
        try:
            await self.run_once()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.logger.exception("Job %s failed: %s", self.config.job_id, exc)

    async def _wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds. Returns True when a stop was requested."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            pass
        return self.should_stop()

    async def setup(self) -> None:
        """Optional hook executed once before the first tick."""

    async def teardown(self) -> None:
        """Optional hook executed once after the last tick."""

    @abc.abstractmethod
    async def execute(self) -> None:
        """Job body."""
