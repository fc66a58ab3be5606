"""Core primitives: caches, locks and retry policies."""

from .cache import NULL_CACHE, Cache, NullCache
from .cache_memory import MemoryCache
from .cache_redis import RedisCache
from .locks import NULL_LOCK, Lock, NullLock, build_lock_key
from .locks_cache import CacheLock
from .models import CacheKey, CacheOptions, JobConfig, JobTrigger, LockType, Result, StateCode
from .retry import EMPTY_RETRY_POLICY, EmptyRetryPolicy, RetryOutcome, RetryPolicy, TenacityRetryPolicy

__all__ = [
    "Cache",
    "CacheKey",
    "CacheLock",
    "CacheOptions",
    "EMPTY_RETRY_POLICY",
    "EmptyRetryPolicy",
    "JobConfig",
    "JobTrigger",
    "Lock",
    "LockType",
    "MemoryCache",
    "NULL_CACHE",
    "NULL_LOCK",
    "NullCache",
    "NullLock",
    "RedisCache",
    "Result",
    "RetryOutcome",
    "RetryPolicy",
    "StateCode",
    "TenacityRetryPolicy",
    "build_lock_key",
]
