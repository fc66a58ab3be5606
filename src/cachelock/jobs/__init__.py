"""Lock-guarded jobs and their schedules."""

from . import cron
from .base import LockedJob
from .purge import PurgeExpiredJob
from .runtime import JobRuntime

__all__ = ["JobRuntime", "LockedJob", "PurgeExpiredJob", "cron"]
