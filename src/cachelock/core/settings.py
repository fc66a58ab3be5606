"""Runtime settings loader."""

from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from cachelock.utils.env import get_bool_env, get_str_env


class CacheSettings(BaseModel):
    backend: Literal["memory", "redis", "null"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = "cache:"
    default_expiration_seconds: int = Field(default=8 * 3600, ge=1)

    @property
    def default_expiration(self) -> dt.timedelta:
        return dt.timedelta(seconds=self.default_expiration_seconds)


class LockSettings(BaseModel):
    enabled: bool = True
    user_header: str = "X-User-Id"


class RetrySettings(BaseModel):
    count: int = Field(default=3, ge=0)
    wait: bool = True
    forever: bool = False


class JobSettings(BaseModel):
    purge_interval_seconds: Optional[int] = Field(default=60, ge=1)


class RuntimeSettings(BaseModel):
    cache: CacheSettings = Field(default_factory=CacheSettings)
    lock: LockSettings = Field(default_factory=LockSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    jobs: JobSettings = Field(default_factory=JobSettings)

    @classmethod
    def from_file(cls, path: Optional[Path]) -> "RuntimeSettings":
        data = {}
        if path is not None and path.exists():
            data = yaml.safe_load(path.read_text()) or {}
        try:
            settings = cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid runtime settings: {exc}") from exc
        return settings.with_env_overrides()

    def with_env_overrides(self) -> "RuntimeSettings":
        """Apply ``CACHELOCK_*`` / ``REDIS_URL`` environment overrides."""
        cache = self.cache.model_dump()
        backend = get_str_env("CACHELOCK_CACHE_BACKEND")
        if backend:
            cache["backend"] = backend.lower()
        redis_url = get_str_env("REDIS_URL")
        if redis_url:
            cache["redis_url"] = redis_url
        lock = self.lock.model_dump()
        lock["enabled"] = get_bool_env("CACHELOCK_LOCK_ENABLED", default=self.lock.enabled)
        try:
            return self.model_copy(
                update={
                    "cache": CacheSettings.model_validate(cache),
                    "lock": LockSettings.model_validate(lock),
                }
            )
        except ValidationError as exc:
            raise ValueError(f"Invalid runtime settings: {exc}") from exc
