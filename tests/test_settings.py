from __future__ import annotations

import datetime as dt

import pytest

from cachelock.core.cache_memory import MemoryCache
from cachelock.core.cache_redis import RedisCache
from cachelock.core.factory import create_cache, create_lock_factory, create_retry_policy
from cachelock.core.locks import NULL_LOCK
from cachelock.core.locks_cache import CacheLock
from cachelock.core.retry import TenacityRetryPolicy
from cachelock.core.settings import RuntimeSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("CACHELOCK_CACHE_BACKEND", "CACHELOCK_LOCK_ENABLED", "REDIS_URL"):
        monkeypatch.delenv(name, raising=False)


def test_loads_yaml_file(tmp_path):
    path = tmp_path / "cachelock.yml"
    path.write_text(
        "cache:\n"
        "  backend: memory\n"
        "  default_expiration_seconds: 120\n"
        "lock:\n"
        "  user_header: X-Session-User\n"
        "retry:\n"
        "  count: 5\n"
        "  wait: false\n"
    )

    settings = RuntimeSettings.from_file(path)

    assert settings.cache.default_expiration == dt.timedelta(minutes=2)
    assert settings.lock.user_header == "X-Session-User"
    assert settings.retry.count == 5
    assert settings.jobs.purge_interval_seconds == 60


def test_missing_file_yields_defaults(tmp_path):
    settings = RuntimeSettings.from_file(tmp_path / "absent.yml")
    assert settings.cache.backend == "memory"
    assert settings.lock.enabled is True


def test_invalid_file_raises_value_error(tmp_path):
    path = tmp_path / "bad.yml"
    path.write_text("cache:\n  backend: memcached\n")
    with pytest.raises(ValueError, match="Invalid runtime settings"):
        RuntimeSettings.from_file(path)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("CACHELOCK_CACHE_BACKEND", "REDIS")
    monkeypatch.setenv("REDIS_URL", "redis://cache.internal:6380/2")
    monkeypatch.setenv("CACHELOCK_LOCK_ENABLED", "off")

    settings = RuntimeSettings.from_file(None)

    assert settings.cache.backend == "redis"
    assert settings.cache.redis_url == "redis://cache.internal:6380/2"
    assert settings.lock.enabled is False


def test_invalid_environment_override_raises(monkeypatch):
    monkeypatch.setenv("CACHELOCK_CACHE_BACKEND", "disk")
    with pytest.raises(ValueError):
        RuntimeSettings.from_file(None)


def test_factories_follow_settings():
    settings = RuntimeSettings.model_validate({"cache": {"backend": "memory", "default_expiration_seconds": 30}})
    cache = create_cache(settings)
    assert isinstance(cache, MemoryCache)
    assert cache.default_expiration == dt.timedelta(seconds=30)

    factory = create_lock_factory(settings, cache)
    first, second = factory(), factory()
    assert isinstance(first, CacheLock)
    assert first is not second

    assert isinstance(create_retry_policy(settings.retry), TenacityRetryPolicy)


def test_redis_backend_builds_redis_cache():
    settings = RuntimeSettings.model_validate({"cache": {"backend": "redis", "key_prefix": "svc:"}})
    assert isinstance(create_cache(settings), RedisCache)


def test_disabled_locking_uses_null_lock():
    settings = RuntimeSettings.model_validate({"lock": {"enabled": False}})
    factory = create_lock_factory(settings, create_cache(settings))
    assert factory() is NULL_LOCK
