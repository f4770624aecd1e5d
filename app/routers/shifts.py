# app/routers/shifts.py
from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permission import Principal, require_capability
from app.core.security import Capability
from app.db.sql import get_session
from app.dependencies import get_scoped_staff
from app.modules.shifts import repository as shifts_repo
from app.modules.shifts.models import TemporaryShift, WeeklyShift
from app.modules.shifts.resolver import resolve_effective_shift
from app.modules.shifts.schemas import (
    EffectiveShift,
    TemporaryShiftCreate,
    TemporaryShiftPublic,
    WeeklyShiftCreate,
    WeeklyShiftPublic,
    WeeklyShiftUpdate,
)
from app.modules.staff.models import HospitalStaff
from app.modules.staff.repository import get_staff_in_hospital

logger = logging.getLogger(__name__)

router = APIRouter(tags=["shifts"])


async def _shift_in_scope(
    session: AsyncSession, shift: Optional[WeeklyShift | TemporaryShift], principal: Principal
):
    if shift is not None:
        owner = await get_staff_in_hospital(
            session, staff_id=shift.staff_id, hospital_id=principal.hospital_id
        )
        if owner is not None:
            return shift
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="shift_not_found")


# Weekly shifts

@router.post(
    "/staff/{staff_id}/shifts",
    response_model=WeeklyShiftPublic,
    status_code=status.HTTP_201_CREATED,
)
async def create_weekly_shift(
    payload: WeeklyShiftCreate,
    principal: Principal = Depends(require_capability(Capability.SHIFTS_MANAGE)),
    staff: HospitalStaff = Depends(get_scoped_staff),
    session: AsyncSession = Depends(get_session),
):
    shift = await shifts_repo.create_weekly_shift(
        session,
        staff_id=staff.id,
        day=payload.day.value,
        start_time=payload.start_time,
        end_time=payload.end_time,
        shift_name=payload.shift_name.value,
        status=payload.status.value,
    )
    existing = await shifts_repo.list_weekly_shifts(session, staff_id=staff.id, day=shift.day)
    if len(existing) > 1:
        # allowed, the newest one is used; worth knowing when debugging schedules
        logger.warning("Staff %s now has %d %s shifts", staff.id, len(existing), shift.day)
    return shift


@router.get("/staff/{staff_id}/shifts", response_model=List[WeeklyShiftPublic])
async def list_weekly_shifts(
    _: Principal = Depends(require_capability(Capability.SCHEDULE_READ)),
    staff: HospitalStaff = Depends(get_scoped_staff),
    session: AsyncSession = Depends(get_session),
):
    return await shifts_repo.list_weekly_shifts(session, staff_id=staff.id)


@router.patch("/shifts/{shift_id}", response_model=WeeklyShiftPublic)
async def update_weekly_shift(
    shift_id: UUID,
    payload: WeeklyShiftUpdate,
    principal: Principal = Depends(require_capability(Capability.SHIFTS_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    await _shift_in_scope(session, await shifts_repo.get_weekly_shift(session, shift_id), principal)
    shift = await shifts_repo.update_weekly_shift(
        session,
        shift_id,
        day=payload.day.value if payload.day else None,
        start_time=payload.start_time,
        end_time=payload.end_time,
        shift_name=payload.shift_name.value if payload.shift_name else None,
        status=payload.status.value if payload.status else None,
    )
    if shift is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="shift_not_found")
    return shift


@router.delete("/shifts/{shift_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_weekly_shift(
    shift_id: UUID,
    principal: Principal = Depends(require_capability(Capability.SHIFTS_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    await _shift_in_scope(session, await shifts_repo.get_weekly_shift(session, shift_id), principal)
    await shifts_repo.delete_weekly_shift(session, shift_id)
    return None


# Temporary shifts

@router.post(
    "/staff/{staff_id}/temporary-shifts",
    response_model=TemporaryShiftPublic,
    status_code=status.HTTP_201_CREATED,
)
async def create_temporary_shift(
    payload: TemporaryShiftCreate,
    principal: Principal = Depends(require_capability(Capability.SHIFTS_MANAGE)),
    staff: HospitalStaff = Depends(get_scoped_staff),
    session: AsyncSession = Depends(get_session),
):
    # Not checked against already booked slots
    return await shifts_repo.create_temporary_shift(
        session,
        staff_id=staff.id,
        start_time=payload.start_time,
        end_time=payload.end_time,
        status=payload.status.value,
    )


@router.get("/staff/{staff_id}/temporary-shifts", response_model=List[TemporaryShiftPublic])
async def list_temporary_shifts(
    start: Optional[dt.datetime] = Query(None),
    end: Optional[dt.datetime] = Query(None),
    _: Principal = Depends(require_capability(Capability.SCHEDULE_READ)),
    staff: HospitalStaff = Depends(get_scoped_staff),
    session: AsyncSession = Depends(get_session),
):
    return await shifts_repo.list_temporary_shifts(session, staff_id=staff.id, start=start, end=end)


@router.delete("/temporary-shifts/{shift_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_temporary_shift(
    shift_id: UUID,
    principal: Principal = Depends(require_capability(Capability.SHIFTS_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    await _shift_in_scope(session, await shifts_repo.get_temporary_shift(session, shift_id), principal)
    await shifts_repo.delete_temporary_shift(session, shift_id)
    return None


@router.get("/staff/{staff_id}/effective-shift", response_model=EffectiveShift)
async def effective_shift(
    date: dt.date = Query(..., description="Calendar date, YYYY-MM-DD"),
    _: Principal = Depends(require_capability(Capability.SCHEDULE_READ)),
    staff: HospitalStaff = Depends(get_scoped_staff),
    session: AsyncSession = Depends(get_session),
):
    """Shift in force on a date, with temporary overrides applied."""
    return await resolve_effective_shift(session, staff.id, date)
