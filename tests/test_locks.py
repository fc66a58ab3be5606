from __future__ import annotations

import asyncio
import datetime as dt

import pytest

from cachelock.core.cache import NullCache
from cachelock.core.cache_memory import MemoryCache
from cachelock.core.locks import NULL_LOCK, NullLock, build_lock_key
from cachelock.core.locks_cache import CacheLock
from cachelock.core.models import LockType


class SpyCache(MemoryCache):
    """Memory cache that records every call made against it."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    async def exists(self, key):
        self.calls.append("exists")
        return await super().exists(key)

    async def try_set(self, key, value, options=None):
        self.calls.append("try_set")
        return await super().try_set(key, value, options)

    async def remove(self, key):
        self.calls.append("remove")
        await super().remove(key)


class BrokenCache(MemoryCache):
    async def exists(self, key):
        raise ConnectionError("cache unavailable")


class FailingRemoveCache(MemoryCache):
    async def remove(self, key):
        raise ConnectionError("cache unavailable")


@pytest.mark.asyncio
async def test_second_acquire_is_rejected_until_release():
    cache = MemoryCache()
    first, second, third = CacheLock(cache), CacheLock(cache), CacheLock(cache)

    assert await first.acquire("order:42") is True
    assert await second.acquire("order:42") is False

    await first.release()
    assert await third.acquire("order:42") is True


@pytest.mark.asyncio
async def test_release_without_expiration_removes_entry():
    cache = MemoryCache()
    lock = CacheLock(cache)

    assert await lock.acquire("report", None)
    assert await cache.exists("report")
    await lock.release()

    assert not await cache.exists("report")
    assert await CacheLock(cache).acquire("report", None)


@pytest.mark.asyncio
async def test_release_with_expiration_leaves_entry_to_expire():
    cache = MemoryCache()
    lock = CacheLock(cache)

    assert await lock.acquire("job:daily", dt.timedelta(seconds=5))
    await lock.release()

    assert await cache.exists("job:daily")
    assert await CacheLock(cache).acquire("job:daily") is False


@pytest.mark.asyncio
async def test_expired_lock_can_be_reacquired():
    now = [0.0]
    cache = MemoryCache(clock=lambda: now[0])

    assert await CacheLock(cache).acquire("job:daily", dt.timedelta(seconds=5))
    now[0] = 5.5

    assert await CacheLock(cache).acquire("job:daily", dt.timedelta(seconds=5))


@pytest.mark.asyncio
async def test_release_twice_does_not_raise():
    cache = SpyCache()
    lock = CacheLock(cache)
    await lock.acquire("order:7")

    await lock.release()
    await lock.release()

    assert cache.calls.count("remove") == 1


@pytest.mark.asyncio
async def test_release_without_acquire_is_noop():
    cache = SpyCache()
    await CacheLock(cache).release()
    assert cache.calls == []


@pytest.mark.asyncio
async def test_release_after_contention_keeps_holder_entry():
    cache = MemoryCache()
    assert await CacheLock(cache).acquire("order:9")

    loser = CacheLock(cache)
    assert await loser.acquire("order:9") is False
    await loser.release()

    assert await cache.exists("order:9")


@pytest.mark.asyncio
async def test_failed_reacquire_keeps_held_key_releasable():
    cache = MemoryCache()
    lock = CacheLock(cache)

    assert await lock.acquire("a") is True
    assert await lock.acquire("a") is False
    await lock.release()

    assert not await cache.exists("a")


@pytest.mark.asyncio
async def test_concurrent_acquire_has_single_winner():
    cache = MemoryCache()
    results = await asyncio.gather(*(CacheLock(cache).acquire("payment:1") for _ in range(20)))
    assert results.count(True) == 1


@pytest.mark.asyncio
async def test_hold_releases_only_when_acquired():
    cache = MemoryCache()
    holder = CacheLock(cache)

    async with holder.hold("invoice") as acquired:
        assert acquired is True
        async with CacheLock(cache).hold("invoice") as other:
            assert other is False
        assert await cache.exists("invoice")

    assert not await cache.exists("invoice")


@pytest.mark.asyncio
async def test_hold_releases_when_block_raises():
    cache = MemoryCache()

    with pytest.raises(RuntimeError):
        async with CacheLock(cache).hold("import") as acquired:
            assert acquired
            raise RuntimeError("boom")

    assert not await cache.exists("import")


@pytest.mark.asyncio
async def test_backend_errors_propagate():
    with pytest.raises(ConnectionError):
        await CacheLock(BrokenCache()).acquire("anything")


@pytest.mark.asyncio
async def test_backend_errors_during_release_propagate():
    cache = FailingRemoveCache()
    lock = CacheLock(cache)
    assert await lock.acquire("order:11")

    with pytest.raises(ConnectionError):
        await lock.release()
    assert await cache.exists("order:11")


@pytest.mark.asyncio
async def test_lock_over_null_cache_never_acquires():
    assert await CacheLock(NullCache()).acquire("k") is False


@pytest.mark.asyncio
async def test_null_lock_always_acquires_and_never_touches_a_store():
    lock = NullLock()
    assert await lock.acquire("same") is True
    assert await lock.acquire("same") is True
    assert await lock.acquire("", dt.timedelta(seconds=1)) is True
    await lock.release()
    await lock.release()

    async with NULL_LOCK.hold("k") as acquired:
        assert acquired is True


def test_build_lock_key_scopes():
    assert build_lock_key("orders:create", LockType.USER, "u-1") == "u-1_orders:create"
    assert build_lock_key("orders:create", LockType.USER, None) == "_orders:create"
    assert build_lock_key("orders:create", LockType.GLOBAL, "u-1") == "orders:create"
