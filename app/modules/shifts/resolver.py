# app/modules/shifts/resolver.py
"""
Which working interval is in force for a doctor on a given date.

A temporary shift starting on that calendar day (reference zone) wins over
the weekly shift for the same weekday. Only ACTIVE shifts count. When several
shifts of the same kind match, the most recently created one wins, ties
broken by the higher id, so the answer never depends on fetch order.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Iterable, Optional, Sequence, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core import clock
from app.modules.shifts import repository as shifts_repo
from app.modules.shifts.models import ShiftStatus, TemporaryShift, WeeklyShift
from app.modules.shifts.schemas import EffectiveShift

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

S = TypeVar("S", WeeklyShift, TemporaryShift)


def _latest(candidates: Iterable[S]) -> Optional[S]:
    def key(shift: S):
        created = clock.to_utc(shift.created_at) if shift.created_at else _EPOCH
        return created, str(shift.id)

    return max(candidates, key=key, default=None)


def _is_active(shift: WeeklyShift | TemporaryShift) -> bool:
    return (shift.status or ShiftStatus.ACTIVE.value) == ShiftStatus.ACTIVE.value


def pick_effective_shift(
    day: date,
    weekly_shifts: Sequence[WeeklyShift],
    temporary_shifts: Sequence[TemporaryShift],
) -> EffectiveShift:
    temporary = _latest(
        t for t in temporary_shifts
        if _is_active(t) and clock.calendar_day(t.start_time) == day
    )
    if temporary is not None:
        return EffectiveShift(
            found=True,
            start_time=clock.time_of_day(temporary.start_time),
            end_time=clock.time_of_day(temporary.end_time),
            source="temporary",
            shift_id=temporary.id,
        )

    weekday = clock.weekday_name(day)
    weekly = _latest(w for w in weekly_shifts if _is_active(w) and w.day == weekday)
    if weekly is not None:
        return EffectiveShift(
            found=True,
            start_time=weekly.start_time,
            end_time=weekly.end_time,
            source="weekly",
            shift_id=weekly.id,
        )

    return EffectiveShift.none()


async def resolve_effective_shift(
    session: AsyncSession, doctor_id: UUID, day: date
) -> EffectiveShift:
    window_start, window_end = clock.day_window(day)
    temporary = await shifts_repo.list_temporary_shifts(
        session,
        staff_id=doctor_id,
        start=window_start,
        end=window_end,
        status=ShiftStatus.ACTIVE.value,
    )
    weekly = await shifts_repo.list_weekly_shifts(
        session,
        staff_id=doctor_id,
        day=clock.weekday_name(day),
        status=ShiftStatus.ACTIVE.value,
    )
    return pick_effective_shift(day, weekly, temporary)
