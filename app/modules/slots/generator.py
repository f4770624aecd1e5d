# app/modules/slots/generator.py
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterator, List, Optional, Tuple

from app.core import clock
from app.core.config import settings


def shift_bounds(day: date, start_time: time, end_time: time) -> Tuple[datetime, datetime]:
    """
    [start, end) of a shift anchored on `day`, as UTC instants.
    end <= start means the shift runs into the next day, so an equal start
    and end covers a full 24 hours.
    """
    start = clock.to_utc(clock.at(day, start_time))
    end = clock.to_utc(clock.at(day, end_time))
    if end <= start:
        end += timedelta(hours=24)
    return start, end


def iter_slot_boundaries(
    day: date,
    start_time: time,
    end_time: time,
    interval_minutes: Optional[int] = None,
) -> Iterator[datetime]:
    interval = settings.SLOT_INTERVAL_MINUTES if interval_minutes is None else interval_minutes
    if interval <= 0:
        return
    start, end = shift_bounds(day, start_time, end_time)
    step = timedelta(minutes=interval)
    current = start
    while current < end:
        yield clock.to_reference(current)
        current += step


def generate_slot_boundaries(
    day: date,
    start_time: time,
    end_time: time,
    interval_minutes: Optional[int] = None,
) -> List[datetime]:
    """
    Ordered slot start times covering the shift, in the reference zone.
    A non-positive interval yields no boundaries.
    """
    return list(iter_slot_boundaries(day, start_time, end_time, interval_minutes))
