# app/core/clock.py
"""
Fixed reference zone helpers.

Every wall-clock extraction and comparison done by the scheduler goes through
this module, so the shift resolver, the slot generator and the booking
reconciler always agree on what "09:15 on Monday" means.

Naive datetimes coming back from the database are treated as UTC; everything
is written back as UTC.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

from app.core.config import settings

WEEKDAYS = (
    "MONDAY",
    "TUESDAY",
    "WEDNESDAY",
    "THURSDAY",
    "FRIDAY",
    "SATURDAY",
    "SUNDAY",
)

WALL_CLOCK_FORMAT = "%H:%M"


@lru_cache(maxsize=None)
def reference_zone() -> ZoneInfo:
    return ZoneInfo(settings.SCHEDULE_TZ)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def to_reference(moment: datetime) -> datetime:
    return to_utc(moment).astimezone(reference_zone())


def at(day: date, wall: time) -> datetime:
    """Anchor a wall-clock time on a calendar day in the reference zone."""
    return datetime.combine(day, wall.replace(tzinfo=None), tzinfo=reference_zone())


def wall_clock(moment: datetime) -> str:
    """HH:MM rendering used on both sides of every slot comparison."""
    return to_reference(moment).strftime(WALL_CLOCK_FORMAT)


def time_of_day(moment: datetime) -> time:
    return to_reference(moment).time().replace(second=0, microsecond=0)


def calendar_day(moment: datetime) -> date:
    return to_reference(moment).date()


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def day_window(day: date) -> tuple[datetime, datetime]:
    """[start, end) of a reference-zone calendar day, expressed in UTC."""
    start = at(day, time.min)
    end = at(day + timedelta(days=1), time.min)
    return to_utc(start), to_utc(end)
