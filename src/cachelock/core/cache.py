"""Abstract cache interface and the null cache."""

from __future__ import annotations

import abc
import datetime as dt
from typing import Any, Optional, Union

from .models import DEFAULT_CACHE_EXPIRATION, CacheKey, CacheOptions


KeyLike = Union[str, CacheKey]


def resolve_key(key: KeyLike) -> str:
    """Normalise a plain string or ``CacheKey`` to the stored key."""
    if isinstance(key, CacheKey):
        return key.full_key
    return key


def resolve_expiration(options: Optional[CacheOptions], default: dt.timedelta) -> dt.timedelta:
    if options is None or options.expiration is None:
        return default
    return options.expiration


class Cache(abc.ABC):
    """Asynchronous key-value cache.

    ``try_set`` must be atomic: it succeeds only if the key was absent
    immediately before, within the same operation. Locks built on a cache
    rely on nothing else for mutual exclusion.
    """

    default_expiration: dt.timedelta = DEFAULT_CACHE_EXPIRATION

    @abc.abstractmethod
    async def exists(self, key: KeyLike) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    @abc.abstractmethod
    async def get(self, key: KeyLike) -> Optional[Any]:  # pragma: no cover - interface
        raise NotImplementedError

    @abc.abstractmethod
    async def set(self, key: KeyLike, value: Any, options: Optional[CacheOptions] = None) -> None:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    async def try_set(self, key: KeyLike, value: Any, options: Optional[CacheOptions] = None) -> bool:  # pragma: no cover
        """Store ``value`` only if ``key`` is absent. Returns True when stored."""
        raise NotImplementedError

    @abc.abstractmethod
    async def remove(self, key: KeyLike) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abc.abstractmethod
    async def remove_by_prefix(self, prefix: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abc.abstractmethod
    async def clear(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources. No-op by default."""

    @property
    def backend_name(self) -> str:
        return self.__class__.__name__


class NullCache(Cache):
    """Cache that stores nothing. Every lookup misses and every insert fails."""

    async def exists(self, key: KeyLike) -> bool:
        return False

    async def get(self, key: KeyLike) -> Optional[Any]:
        return None

    async def set(self, key: KeyLike, value: Any, options: Optional[CacheOptions] = None) -> None:
        return None

    async def try_set(self, key: KeyLike, value: Any, options: Optional[CacheOptions] = None) -> bool:
        return False

    async def remove(self, key: KeyLike) -> None:
        return None

    async def remove_by_prefix(self, prefix: str) -> None:
        return None

    async def clear(self) -> None:
        return None


NULL_CACHE = NullCache()
