# app/modules/shifts/repository.py
from __future__ import annotations

from datetime import datetime, time
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import to_utc
from app.modules.shifts.models import ShiftName, ShiftStatus, TemporaryShift, WeeklyShift


# Weekly shifts

async def create_weekly_shift(
    session: AsyncSession,
    *,
    staff_id: UUID,
    day: str,
    start_time: time,
    end_time: time,
    shift_name: str = ShiftName.GENERAL.value,
    status: str = ShiftStatus.ACTIVE.value,
) -> WeeklyShift:
    shift = WeeklyShift(
        staff_id=staff_id,
        day=day,
        start_time=start_time,
        end_time=end_time,
        shift_name=shift_name,
        status=status,
    )
    session.add(shift)
    await session.flush()
    return shift


async def get_weekly_shift(session: AsyncSession, shift_id: UUID) -> Optional[WeeklyShift]:
    return await session.get(WeeklyShift, shift_id)


async def update_weekly_shift(
    session: AsyncSession, shift_id: UUID, **fields
) -> Optional[WeeklyShift]:
    """Apply the non-None fields; returns None when the shift does not exist."""
    shift = await get_weekly_shift(session, shift_id)
    if shift is None:
        return None
    for key, value in fields.items():
        if value is not None:
            setattr(shift, key, value)
    await session.flush()
    return shift


async def delete_weekly_shift(session: AsyncSession, shift_id: UUID) -> int:
    res = await session.execute(delete(WeeklyShift).where(WeeklyShift.id == shift_id))
    return res.rowcount or 0  # type: ignore


async def list_weekly_shifts(
    session: AsyncSession,
    *,
    staff_id: UUID,
    day: Optional[str] = None,
    status: Optional[str] = None,
) -> Sequence[WeeklyShift]:
    stmt = select(WeeklyShift).where(WeeklyShift.staff_id == staff_id)
    if day is not None:
        stmt = stmt.where(WeeklyShift.day == day)
    if status is not None:
        stmt = stmt.where(WeeklyShift.status == status)
    stmt = stmt.order_by(WeeklyShift.day, WeeklyShift.start_time, WeeklyShift.created_at)
    return (await session.execute(stmt)).scalars().all()


# Temporary shifts

async def create_temporary_shift(
    session: AsyncSession,
    *,
    staff_id: UUID,
    start_time: datetime,
    end_time: datetime,
    status: str = ShiftStatus.ACTIVE.value,
) -> TemporaryShift:
    shift = TemporaryShift(
        staff_id=staff_id,
        start_time=to_utc(start_time),
        end_time=to_utc(end_time),
        status=status,
    )
    session.add(shift)
    await session.flush()
    return shift


async def get_temporary_shift(session: AsyncSession, shift_id: UUID) -> Optional[TemporaryShift]:
    return await session.get(TemporaryShift, shift_id)


async def delete_temporary_shift(session: AsyncSession, shift_id: UUID) -> int:
    res = await session.execute(delete(TemporaryShift).where(TemporaryShift.id == shift_id))
    return res.rowcount or 0  # type: ignore


async def list_temporary_shifts(
    session: AsyncSession,
    *,
    staff_id: UUID,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    status: Optional[str] = None,
) -> Sequence[TemporaryShift]:
    """Temporary shifts of a staff member starting in [start, end)."""
    stmt = select(TemporaryShift).where(TemporaryShift.staff_id == staff_id)
    if start is not None:
        stmt = stmt.where(TemporaryShift.start_time >= to_utc(start))
    if end is not None:
        stmt = stmt.where(TemporaryShift.start_time < to_utc(end))
    if status is not None:
        stmt = stmt.where(TemporaryShift.status == status)
    stmt = stmt.order_by(TemporaryShift.start_time)
    return (await session.execute(stmt)).scalars().all()
