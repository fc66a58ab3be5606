"""Redis-backed cache using SET NX PX semantics."""

from __future__ import annotations

import datetime as dt
import json
from typing import Any, Optional

from redis.asyncio import Redis

from .cache import Cache, KeyLike, resolve_expiration, resolve_key
from .models import DEFAULT_CACHE_EXPIRATION, CacheOptions


class RedisCache(Cache):
    """Cache shared across processes through Redis.

    Values are stored JSON-encoded under ``key_prefix``. ``try_set`` maps to a
    single ``SET key value NX PX ttl`` round trip, so acquisition races are
    settled by Redis.
    """

    def __init__(
        self,
        redis: Redis,
        *,
        key_prefix: str = "cache:",
        default_expiration: dt.timedelta = DEFAULT_CACHE_EXPIRATION,
    ) -> None:
        self._redis = redis
        self._prefix = key_prefix
        self.default_expiration = default_expiration

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        key_prefix: str = "cache:",
        default_expiration: dt.timedelta = DEFAULT_CACHE_EXPIRATION,
    ) -> "RedisCache":
        return cls(
            Redis.from_url(url, decode_responses=True),
            key_prefix=key_prefix,
            default_expiration=default_expiration,
        )

    def _name(self, key: KeyLike) -> str:
        return f"{self._prefix}{resolve_key(key)}"

    def _ttl_ms(self, options: Optional[CacheOptions]) -> int:
        ttl = resolve_expiration(options, self.default_expiration)
        return max(1, int(ttl.total_seconds() * 1000))

    async def exists(self, key: KeyLike) -> bool:
        return bool(await self._redis.exists(self._name(key)))

    async def get(self, key: KeyLike) -> Optional[Any]:
        raw = await self._redis.get(self._name(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: KeyLike, value: Any, options: Optional[CacheOptions] = None) -> None:
        await self._redis.set(self._name(key), json.dumps(value), px=self._ttl_ms(options))

    async def try_set(self, key: KeyLike, value: Any, options: Optional[CacheOptions] = None) -> bool:
        return bool(
            await self._redis.set(self._name(key), json.dumps(value), px=self._ttl_ms(options), nx=True)
        )

    async def remove(self, key: KeyLike) -> None:
        await self._redis.delete(self._name(key))

    async def remove_by_prefix(self, prefix: str) -> None:
        if not prefix:
            return
        await self._delete_matching(f"{self._prefix}{prefix}*")

    async def clear(self) -> None:
        await self._delete_matching(f"{self._prefix}*")

    async def _delete_matching(self, pattern: str) -> None:
        batch = []
        async for name in self._redis.scan_iter(match=pattern):
            batch.append(name)
            if len(batch) >= 500:
                await self._redis.delete(*batch)
                batch.clear()
        if batch:
            await self._redis.delete(*batch)

    async def close(self) -> None:
        await self._redis.aclose()
