"""Builders that turn runtime settings into cache, lock and retry instances."""

from __future__ import annotations

from typing import Callable

from cachelock.utils.logging import get_logger

from .cache import NULL_CACHE, Cache
from .cache_memory import MemoryCache
from .cache_redis import RedisCache
from .locks import NULL_LOCK, Lock
from .locks_cache import CacheLock
from .retry import RetryPolicy, TenacityRetryPolicy
from .settings import RetrySettings, RuntimeSettings


LockFactory = Callable[[], Lock]

logger = get_logger("factory")


def create_cache(settings: RuntimeSettings) -> Cache:
    backend = settings.cache.backend
    if backend == "redis":
        logger.info("Using Redis cache at %s", settings.cache.redis_url)
        return RedisCache.from_url(
            settings.cache.redis_url,
            key_prefix=settings.cache.key_prefix,
            default_expiration=settings.cache.default_expiration,
        )
    if backend == "null":
        logger.warning("Null cache configured; cache-backed locks will never be acquired")
        return NULL_CACHE
    return MemoryCache(default_expiration=settings.cache.default_expiration)


def create_lock_factory(settings: RuntimeSettings, cache: Cache) -> LockFactory:
    """Return a factory producing one fresh lock handle per critical section."""
    if not settings.lock.enabled:
        logger.info("Locking disabled; using NullLock")
        return lambda: NULL_LOCK
    return lambda: CacheLock(cache)


def create_retry_policy(settings: RetrySettings) -> RetryPolicy:
    policy = TenacityRetryPolicy(count=settings.count)
    if settings.forever:
        policy.forever()
    if settings.wait:
        policy.wait()
    return policy
