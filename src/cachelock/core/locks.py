"""Abstract lock interface, the null lock and key conventions."""

from __future__ import annotations

import abc
import datetime as dt
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from .models import LockType


class Lock(abc.ABC):
    """Named, non-blocking lock.

    A handle serves one acquire/release pair. ``acquire`` reports contention
    by returning False; it never waits for the current holder.
    """

    @abc.abstractmethod
    async def acquire(self, key: str, expiration: Optional[dt.timedelta] = None) -> bool:  # pragma: no cover
        """Try to take ownership of ``key``."""
        raise NotImplementedError

    @abc.abstractmethod
    async def release(self) -> None:  # pragma: no cover - interface
        """Release the key taken by the last ``acquire`` on this handle."""
        raise NotImplementedError

    @asynccontextmanager
    async def hold(self, key: str, expiration: Optional[dt.timedelta] = None) -> AsyncIterator[bool]:
        """Acquire ``key`` for the duration of the block.

        Yields the acquisition result. Release only happens when the lock was
        actually taken.
        """
        acquired = await self.acquire(key, expiration)
        try:
            yield acquired
        finally:
            if acquired:
                await self.release()


class NullLock(Lock):
    """Lock that always succeeds. Used to switch locking off without touching callers."""

    async def acquire(self, key: str, expiration: Optional[dt.timedelta] = None) -> bool:
        return True

    async def release(self) -> None:
        return None

    def __repr__(self) -> str:
        return "NullLock()"


NULL_LOCK = NullLock()


def build_lock_key(operation: str, lock_type: LockType = LockType.USER, user_id: Optional[str] = None) -> str:
    """Derive the cache key for a lock request.

    User-scoped keys are ``"{user_id}_{operation}"``; global keys are the
    operation itself. A missing user id still yields the ``"_"`` prefix.
    """
    if lock_type is LockType.USER:
        return f"{user_id or ''}_{operation}"
    return operation
