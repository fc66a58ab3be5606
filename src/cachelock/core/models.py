"""Data models shared across the cachelock runtime."""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Optional

from croniter import croniter
from pydantic import BaseModel, Field, field_validator, model_validator


DEFAULT_CACHE_EXPIRATION = dt.timedelta(hours=8)


class LockType(str, Enum):
    """Scope of a lock request.

    ``USER`` deduplicates repeated submissions from one user for one
    operation. ``GLOBAL`` serialises every caller of the operation.
    """

    USER = "user"
    GLOBAL = "global"


class StateCode(str, Enum):
    """Result codes returned in API payloads."""

    OK = "1"
    FAIL = "2"
    UNAUTHORIZED = "3"


class CacheOptions(BaseModel):
    """Per-entry cache options."""

    expiration: Optional[dt.timedelta] = None

    @field_validator("expiration")
    @classmethod
    def _positive(cls, value: Optional[dt.timedelta]) -> Optional[dt.timedelta]:
        if value is not None and value <= dt.timedelta(0):
            raise ValueError("expiration must be positive")
        return value


class CacheKey(BaseModel):
    """Cache key with an optional prefix."""

    key: str
    prefix: str = ""

    @field_validator("key")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("cache key must not be empty")
        return value

    @property
    def full_key(self) -> str:
        return f"{self.prefix}{self.key}"

    def __str__(self) -> str:
        return self.full_key


class Result(BaseModel):
    """Uniform API response envelope."""

    code: StateCode
    message: Optional[str] = None
    data: Optional[Any] = None


class JobTrigger(str, Enum):
    """How a job is scheduled.

    ``CRON`` recurs on a cron expression, ``DELAY`` runs once after a delay,
    ``INTERVAL`` repeats with a fixed pause between ticks and ``ONCE`` runs a
    single tick as soon as the job starts.
    """

    CRON = "cron"
    DELAY = "delay"
    INTERVAL = "interval"
    ONCE = "once"


class JobConfig(BaseModel):
    """Configuration for a single locked job.

    At most one of ``cron``, ``delay_seconds`` and ``interval_seconds`` may be
    set. With none of them the job runs once immediately.
    """

    job_id: str = Field(min_length=1)
    cron: Optional[str] = None
    delay_seconds: Optional[float] = Field(default=None, gt=0)
    interval_seconds: Optional[float] = Field(default=None, gt=0)
    lock_ttl_seconds: Optional[int] = Field(default=None, ge=1)

    @field_validator("cron")
    @classmethod
    def _valid_cron(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not croniter.is_valid(value):
            raise ValueError(f"invalid cron expression: {value!r}")
        return value

    @model_validator(mode="after")
    def _single_trigger(self) -> "JobConfig":
        configured = [v for v in (self.cron, self.delay_seconds, self.interval_seconds) if v is not None]
        if len(configured) > 1:
            raise ValueError("only one of cron, delay_seconds and interval_seconds may be set")
        return self

    @property
    def trigger(self) -> JobTrigger:
        if self.cron is not None:
            return JobTrigger.CRON
        if self.delay_seconds is not None:
            return JobTrigger.DELAY
        if self.interval_seconds is not None:
            return JobTrigger.INTERVAL
        return JobTrigger.ONCE

    def next_fire_time(self, after: dt.datetime) -> dt.datetime:
        """Next cron fire time strictly after ``after``."""
        if self.cron is None:
            raise ValueError(f"job {self.job_id} has no cron trigger")
        return croniter(self.cron, after).get_next(dt.datetime)

    @property
    def lock_expiration(self) -> Optional[dt.timedelta]:
        if self.lock_ttl_seconds is None:
            return None
        return dt.timedelta(seconds=self.lock_ttl_seconds)
