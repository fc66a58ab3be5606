"""Helpers that build common cron expressions for ``JobConfig.cron``."""

from __future__ import annotations

from enum import IntEnum


class Weekday(IntEnum):
    """Cron day-of-week numbers."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


def minutely() -> str:
    return "* * * * *"


def hourly(minute: int = 0) -> str:
    return f"{minute} * * * *"


def daily(hour: int = 0, minute: int = 0) -> str:
    return f"{minute} {hour} * * *"


def weekly(day_of_week: Weekday = Weekday.MONDAY, hour: int = 0, minute: int = 0) -> str:
    return f"{minute} {hour} * * {int(day_of_week)}"


def monthly(day: int = 1, hour: int = 0, minute: int = 0) -> str:
    return f"{minute} {hour} {day} * *"


def yearly(month: int = 1, day: int = 1, hour: int = 0, minute: int = 0) -> str:
    return f"{minute} {hour} {day} {month} *"
