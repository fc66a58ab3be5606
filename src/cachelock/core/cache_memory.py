"""Process-local cache with per-key expiration."""

from __future__ import annotations

import asyncio
import datetime as dt
import time
from typing import Any, Callable, Dict, Optional, Tuple

from .cache import Cache, KeyLike, resolve_expiration, resolve_key
from .models import DEFAULT_CACHE_EXPIRATION, CacheOptions


class MemoryCache(Cache):
    """In-memory cache for single-process deployments and tests.

    Entries are stored as ``(value, expires_at)`` against a monotonic clock.
    Expired entries count as absent and are dropped lazily on access, or
    eagerly through :meth:`purge_expired`.
    """

    def __init__(
        self,
        *,
        default_expiration: dt.timedelta = DEFAULT_CACHE_EXPIRATION,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_expiration = default_expiration
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = asyncio.Lock()

    def _deadline(self, options: Optional[CacheOptions]) -> float:
        ttl = resolve_expiration(options, self.default_expiration)
        return self._clock() + ttl.total_seconds()

    def _live(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        if entry[1] <= self._clock():
            del self._entries[key]
            return False
        return True

    async def exists(self, key: KeyLike) -> bool:
        async with self._lock:
            return self._live(resolve_key(key))

    async def get(self, key: KeyLike) -> Optional[Any]:
        name = resolve_key(key)
        async with self._lock:
            if not self._live(name):
                return None
            return self._entries[name][0]

    async def set(self, key: KeyLike, value: Any, options: Optional[CacheOptions] = None) -> None:
        async with self._lock:
            self._entries[resolve_key(key)] = (value, self._deadline(options))

    async def try_set(self, key: KeyLike, value: Any, options: Optional[CacheOptions] = None) -> bool:
        name = resolve_key(key)
        async with self._lock:
            if self._live(name):
                return False
            self._entries[name] = (value, self._deadline(options))
            return True

    async def remove(self, key: KeyLike) -> None:
        async with self._lock:
            self._entries.pop(resolve_key(key), None)

    async def remove_by_prefix(self, prefix: str) -> None:
        if not prefix:
            return
        async with self._lock:
            for name in [name for name in self._entries if name.startswith(prefix)]:
                del self._entries[name]

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    async def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        async with self._lock:
            now = self._clock()
            expired = [name for name, (_, deadline) in self._entries.items() if deadline <= now]
            for name in expired:
                del self._entries[name]
            return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
