# app/modules/slots/availability.py
from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.sql import upstream_guarded
from app.modules.shifts.resolver import resolve_effective_shift
from app.modules.slots import repository as slots_repo
from app.modules.slots.generator import shift_bounds
from app.modules.slots.reconciler import classify_slots
from app.modules.slots.schemas import DoctorAvailability


@upstream_guarded
async def get_doctor_availability(
    session: AsyncSession,
    doctor_id: UUID,
    day: date,
    interval_minutes: Optional[int] = None,
) -> DoctorAvailability:
    """
    Availability view for one doctor and date. Everything is read fresh.
    No effective shift gives shift_found=False and no slots.
    """
    shift = await resolve_effective_shift(session, doctor_id, day)
    if not shift.found:
        return DoctorAvailability(doctor_id=doctor_id, date=day, shift_found=False)

    # Only slots inside the shift's own span, so time-of-day matching is unambiguous
    window_start, window_end = shift_bounds(day, shift.start_time, shift.end_time)
    booked = await slots_repo.list_by_doctor(
        session, doctor_id=doctor_id, start=window_start, end=window_end
    )

    return DoctorAvailability(
        doctor_id=doctor_id,
        date=day,
        shift_found=True,
        source=shift.source,
        start_time=shift.start_time,
        end_time=shift.end_time,
        slots=classify_slots(doctor_id, day, shift, booked, interval_minutes),
    )
