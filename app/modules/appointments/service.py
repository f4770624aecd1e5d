# app/modules/appointments/service.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import clock
from app.core.errors import AppointmentNotFound, InvalidReservation, SlotConflict
from app.db.sql import upstream_guarded
from app.modules.appointments.models import Appointment, ApptStatus
from app.modules.appointments.schemas import (
    AppointmentCreateRequest,
    AppointmentListItem,
    AppointmentListPage,
    AppointmentPublic,
)
from app.modules.log import write_audit_log
from app.modules.slots import repository as slots_repo
from app.modules.slots import service as slot_service
from app.modules.slots.availability import get_doctor_availability
from app.modules.slots.schemas import SlotAvailability, SlotStatus


def _to_public(appt: Appointment, slot_id: Optional[UUID] = None) -> AppointmentPublic:
    public = AppointmentPublic.model_validate(appt)
    public.slot_id = slot_id
    return public


def _to_list_item(appt: Appointment) -> AppointmentListItem:
    return AppointmentListItem.model_validate(appt)


async def _bookable_boundary(
    session: AsyncSession, doctor_id: UUID, scheduled_at: datetime
) -> SlotAvailability:
    """
    The availability entry for scheduled_at. The boundary must belong to the
    effective shift of its calendar day, or to an overnight shift of the day
    before, and still have a free seat.
    """
    day = clock.calendar_day(scheduled_at)
    target = clock.to_utc(scheduled_at)
    shift_found = False
    for candidate in (day, day - timedelta(days=1)):
        availability = await get_doctor_availability(session, doctor_id, candidate)
        if not availability.shift_found:
            continue
        shift_found = True
        for entry in availability.slots:
            if clock.to_utc(entry.starts_at) == target:
                if entry.status is SlotStatus.FULL:
                    raise SlotConflict("slot_full")
                return entry

    if not shift_found:
        raise InvalidReservation("no_shift_for_date")
    raise InvalidReservation("not_a_slot_boundary")


# CREATE
@upstream_guarded
async def book_appointment_svc(
    session: AsyncSession,
    payload: AppointmentCreateRequest,
    actor_id: Optional[UUID] = None,
) -> AppointmentPublic:
    """
    Book an appointment and seat it in the same transaction.

    Logic:
    - scheduled_at must be a boundary of the doctor's effective shift.
    - AVAILABLE boundary -> new slot; PARTIAL boundary -> second seat.
    - Losing a race to another booking raises SlotConflict.
    """
    boundary = await _bookable_boundary(session, payload.doctor_id, payload.scheduled_at)

    appt = Appointment(
        patient_id=payload.patient_id,
        doctor_id=payload.doctor_id,
        scheduled_at=clock.to_utc(payload.scheduled_at),
        visit_type=payload.visit_type.value,
        status=ApptStatus.SCHEDULED.value,
        notes=payload.notes,
    )
    session.add(appt)
    await session.flush()

    if boundary.status is SlotStatus.PARTIAL and boundary.slot_id is not None:
        slot = await slot_service.attach_second_appointment(
            session, boundary.slot_id, appt.id, actor_id=actor_id
        )
    else:
        slot = await slot_service.reserve_new_slot(
            session, payload.doctor_id, appt.scheduled_at, appt.id, actor_id=actor_id
        )

    await write_audit_log(
        session, actor_id, "BOOK_APPOINTMENT", f"appointment={appt.id} slot={slot.id}"
    )
    await session.refresh(appt)
    return _to_public(appt, slot.id)


async def get_appointment_svc(session: AsyncSession, appointment_id: UUID) -> Appointment:
    appt = await session.get(Appointment, appointment_id)
    if appt is None:
        raise AppointmentNotFound("appointment_not_found")
    return appt


# CANCEL
@upstream_guarded
async def cancel_appointment_svc(
    session: AsyncSession,
    appointment_id: UUID,
    actor_id: Optional[UUID] = None,
) -> AppointmentPublic:
    """
    Cancel an appointment and free its seat. Idempotent.
    """
    appt = await get_appointment_svc(session, appointment_id)
    if appt.status == ApptStatus.CANCELLED.value:
        return _to_public(appt)

    await slot_service.release_appointment(session, appt.id)
    appt.status = ApptStatus.CANCELLED.value
    await session.flush()
    await write_audit_log(session, actor_id, "CANCEL_APPOINTMENT", f"appointment={appt.id}")
    await session.refresh(appt)
    return _to_public(appt)


# RESCHEDULE
@upstream_guarded
async def reschedule_appointment_svc(
    session: AsyncSession,
    appointment_id: UUID,
    scheduled_at: datetime,
    actor_id: Optional[UUID] = None,
) -> AppointmentPublic:
    appt = await get_appointment_svc(session, appointment_id)
    if appt.status == ApptStatus.CANCELLED.value:
        raise InvalidReservation("appointment_cancelled")

    current = await slots_repo.find_slot_by_appointment(session, appt.id)
    same_time = current is not None and clock.to_utc(current.time_slot) == clock.to_utc(scheduled_at)
    if not same_time:
        await _bookable_boundary(session, appt.doctor_id, scheduled_at)

    await slot_service.reschedule_appointment(session, appt.id, scheduled_at, actor_id=actor_id)
    slot = await slots_repo.find_slot_by_appointment(session, appt.id)
    await session.refresh(appt)
    return _to_public(appt, slot.id if slot else None)


# DOCTOR VIEW SCHEDULED
@upstream_guarded
async def list_appointments_by_doctor_svc(
    session: AsyncSession,
    doctor_id: UUID,
    limit: int,
    offset: int,
) -> AppointmentListPage:
    """
    Upcoming (non-cancelled) appointments of one doctor, oldest first.
    """
    cond = (
        (Appointment.doctor_id == doctor_id)
        & (Appointment.status != ApptStatus.CANCELLED.value)
    )

    total_stmt = select(func.count()).select_from(Appointment).where(cond)
    total = (await session.execute(total_stmt)).scalar_one()

    stmt = (
        select(Appointment)
        .where(cond)
        .order_by(Appointment.scheduled_at, Appointment.created_at)
        .limit(limit)
        .offset(offset)
    )
    rows: List[Appointment] = list((await session.execute(stmt)).scalars().all())
    items = [_to_list_item(a) for a in rows]
    has_next = offset + limit < total

    return AppointmentListPage(
        items=items,
        total=total,
        limit=limit,
        offset=offset,
        has_next=has_next,
    )
