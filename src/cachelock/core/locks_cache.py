"""Cache-backed lock using the cache's atomic set-if-absent."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from cachelock.utils.logging import get_logger

from .cache import Cache
from .locks import Lock
from .models import CacheOptions


_LOCK_VALUE = 1

logger = get_logger("locks")


class CacheLock(Lock):
    """Lock whose state is the presence of a cache entry.

    When an expiration is given the entry is left to expire on its own and
    ``release`` does nothing. This keeps a late release from clearing a lock
    that another process re-acquired after the original entry expired, at
    the cost of holding the lock for the full expiration.
    """

    def __init__(self, cache: Cache) -> None:
        self._cache = cache
        self._key: Optional[str] = None
        self._expiration: Optional[dt.timedelta] = None

    @property
    def key(self) -> Optional[str]:
        return self._key

    @property
    def expiration(self) -> Optional[dt.timedelta]:
        return self._expiration

    async def acquire(self, key: str, expiration: Optional[dt.timedelta] = None) -> bool:
        # Only a successful acquire replaces the recorded key.
        if await self._cache.exists(key):
            logger.debug("Lock %s is held elsewhere", key)
            return False
        acquired = await self._cache.try_set(key, _LOCK_VALUE, CacheOptions(expiration=expiration))
        if acquired:
            self._key = key
            self._expiration = expiration
        logger.debug("Lock %s %s", key, "acquired" if acquired else "lost to a concurrent caller")
        return acquired

    async def release(self) -> None:
        if self._key is None or self._expiration is not None:
            return
        if not await self._cache.exists(self._key):
            return
        await self._cache.remove(self._key)
        logger.debug("Lock %s released", self._key)
