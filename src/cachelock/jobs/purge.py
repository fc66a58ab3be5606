"""Built-in job that evicts expired entries from an in-memory cache."""

from __future__ import annotations

from typing import Optional

from cachelock.core.cache_memory import MemoryCache
from cachelock.core.factory import LockFactory
from cachelock.core.models import JobConfig
from cachelock.core.retry import RetryPolicy

from .base import LockedJob


class PurgeExpiredJob(LockedJob):
    """Periodically drops expired ``MemoryCache`` entries."""

    def __init__(
        self,
        cache: MemoryCache,
        *,
        lock_factory: LockFactory,
        interval_seconds: float = 60,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        super().__init__(
            JobConfig(job_id="cache-purge", interval_seconds=interval_seconds),
            lock_factory=lock_factory,
            retry_policy=retry_policy,
        )
        self._cache = cache
        self.purged_total = 0

    async def execute(self) -> None:
        purged = await self._cache.purge_expired()
        self.purged_total += purged
        if purged:
            self.logger.info("Purged %d expired cache entries", purged)
