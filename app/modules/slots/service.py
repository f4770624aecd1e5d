# app/modules/slots/service.py
"""
Slot reservation: the write path of the scheduler.

Callers are expected to have checked availability first; the unique
constraint on (doctor_id, time_slot) and the compare-and-swap seat fill are
the backstops for concurrent bookings. A lost race surfaces as SlotConflict.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import to_utc, wall_clock
from app.core.errors import (
    AppointmentNotFound,
    InvalidReservation,
    SlotConflict,
    SlotNotFound,
)
from app.db.sql import upstream_guarded
from app.modules.appointments.models import Appointment, ApptStatus
from app.modules.log import write_audit_log
from app.modules.slots import repository as slots_repo
from app.modules.slots.models import Slot


async def _get_appointment(session: AsyncSession, appointment_id: UUID) -> Appointment:
    appointment = await session.get(Appointment, appointment_id)
    if appointment is None:
        raise AppointmentNotFound("appointment_not_found")
    return appointment


def _ensure_not_cancelled(appointment: Appointment) -> None:
    if appointment.status == ApptStatus.CANCELLED.value:
        raise InvalidReservation("appointment_cancelled")


async def _ensure_unseated(session: AsyncSession, appointment_id: UUID) -> None:
    if await slots_repo.find_slot_by_appointment(session, appointment_id) is not None:
        raise InvalidReservation("appointment_already_seated")


async def seat_appointment(
    session: AsyncSession, *, doctor_id: UUID, time_slot: datetime, appointment_id: UUID
) -> Slot:
    """
    Put an appointment on the boundary: second seat of an existing slot, or a
    new slot. Leftover empty slots are reused.
    """
    existing = await slots_repo.get_slot_at(session, doctor_id=doctor_id, time_slot=time_slot)
    if existing is None:
        return await slots_repo.insert_slot(
            session,
            doctor_id=doctor_id,
            time_slot=time_slot,
            appointment1_id=appointment_id,
        )
    if existing.seats_taken >= 2:
        raise SlotConflict("slot_full")
    if not await slots_repo.fill_free_seat(session, existing, appointment_id):
        raise SlotConflict("slot_full")
    return existing


@upstream_guarded
async def reserve_new_slot(
    session: AsyncSession,
    doctor_id: UUID,
    time_slot: datetime,
    appointment_id: UUID,
    *,
    actor_id: Optional[UUID] = None,
) -> Slot:
    """
    Open a slot for doctor+time with the appointment in the first seat.
    SlotConflict if a slot holding appointments already sits there.
    """
    appointment = await _get_appointment(session, appointment_id)
    if appointment.doctor_id != doctor_id:
        raise InvalidReservation("appointment_doctor_mismatch")
    _ensure_not_cancelled(appointment)
    await _ensure_unseated(session, appointment_id)

    existing = await slots_repo.get_slot_at(session, doctor_id=doctor_id, time_slot=time_slot)
    if existing is None:
        slot = await slots_repo.insert_slot(
            session,
            doctor_id=doctor_id,
            time_slot=time_slot,
            appointment1_id=appointment_id,
        )
    elif existing.seats_taken == 0 and await slots_repo.fill_free_seat(session, existing, appointment_id):
        slot = existing
    else:
        raise SlotConflict("slot_taken")

    await write_audit_log(
        session, actor_id, "RESERVE_SLOT",
        f"slot={slot.id} appointment={appointment_id} at={wall_clock(slot.time_slot)}",
    )
    return slot


@upstream_guarded
async def attach_second_appointment(
    session: AsyncSession,
    slot_id: UUID,
    appointment_id: UUID,
    *,
    actor_id: Optional[UUID] = None,
) -> Slot:
    """Fill the free seat of a PARTIAL slot. SlotConflict once the slot is FULL."""
    slot = await slots_repo.get_slot(session, slot_id)
    if slot is None:
        raise SlotNotFound("slot_not_found")
    appointment = await _get_appointment(session, appointment_id)
    if appointment.doctor_id != slot.doctor_id:
        raise InvalidReservation("appointment_doctor_mismatch")
    _ensure_not_cancelled(appointment)
    if slot.holds(appointment_id):
        raise SlotConflict("already_in_slot")
    if slot.seats_taken >= 2:
        raise SlotConflict("slot_full")
    await _ensure_unseated(session, appointment_id)

    if not await slots_repo.fill_free_seat(session, slot, appointment_id):
        raise SlotConflict("slot_full")

    await write_audit_log(
        session, actor_id, "ATTACH_SLOT", f"slot={slot.id} appointment={appointment_id}"
    )
    return slot


@upstream_guarded
async def reschedule_appointment(
    session: AsyncSession,
    appointment_id: UUID,
    new_time_slot: datetime,
    *,
    actor_id: Optional[UUID] = None,
) -> Appointment:
    """
    Move an appointment to another boundary. The appointment's scheduled_at
    and its seat change inside one savepoint: both land or neither does.
    """
    appointment = await _get_appointment(session, appointment_id)
    _ensure_not_cancelled(appointment)
    target = to_utc(new_time_slot)

    async with session.begin_nested():
        current = await slots_repo.find_slot_by_appointment(session, appointment.id)
        if current is not None and to_utc(current.time_slot) == target:
            pass
        elif (
            current is not None
            and current.seats_taken == 1
            and await slots_repo.get_slot_at(
                session, doctor_id=appointment.doctor_id, time_slot=target
            ) is None
        ):
            # sole occupant: the slot itself moves
            await slots_repo.set_slot_time(session, current, target)
        else:
            if current is not None:
                await slots_repo.release_seat(session, current, appointment.id)
            await seat_appointment(
                session,
                doctor_id=appointment.doctor_id,
                time_slot=target,
                appointment_id=appointment.id,
            )
        appointment.scheduled_at = target
        await session.flush()

    await write_audit_log(
        session, actor_id, "RESCHEDULE_APPOINTMENT",
        f"appointment={appointment.id} to={target.isoformat()}",
    )
    return appointment


@upstream_guarded
async def update_slot_time(
    session: AsyncSession,
    slot_id: UUID,
    new_time_slot: datetime,
    *,
    actor_id: Optional[UUID] = None,
) -> Slot:
    """
    Administrative move of a whole slot. Seated appointments follow it.
    An empty leftover slot at the new time is dropped; one holding
    appointments is a SlotConflict.
    """
    slot = await slots_repo.get_slot(session, slot_id)
    if slot is None:
        raise SlotNotFound("slot_not_found")
    target = to_utc(new_time_slot)
    if to_utc(slot.time_slot) == target:
        return slot

    other = await slots_repo.get_slot_at(session, doctor_id=slot.doctor_id, time_slot=target)
    if other is not None and other.seats_taken:
        raise SlotConflict("slot_taken")

    async with session.begin_nested():
        if other is not None:
            # must be gone before the move hits uq_slot_doctor_time
            await session.delete(other)
            await session.flush()
        await slots_repo.set_slot_time(session, slot, target)
        for seated in (slot.appointment1_id, slot.appointment2_id):
            if seated is not None:
                appointment = await session.get(Appointment, seated)
                if appointment is not None:
                    appointment.scheduled_at = target
        await session.flush()

    await write_audit_log(
        session, actor_id, "UPDATE_SLOT_TIME", f"slot={slot.id} to={target.isoformat()}"
    )
    return slot


@upstream_guarded
async def release_appointment(session: AsyncSession, appointment_id: UUID) -> Optional[Slot]:
    """Free the seat held by an appointment; the slot row itself is kept."""
    slot = await slots_repo.find_slot_by_appointment(session, appointment_id)
    if slot is None:
        return None
    await slots_repo.release_seat(session, slot, appointment_id)
    return slot


@upstream_guarded
async def delete_slot(
    session: AsyncSession, slot_id: UUID, *, actor_id: Optional[UUID] = None
) -> None:
    slot = await slots_repo.get_slot(session, slot_id)
    if slot is None:
        raise SlotNotFound("slot_not_found")
    if slot.seats_taken:
        raise SlotConflict("slot_in_use")
    await slots_repo.delete_slot(session, slot_id)
    await write_audit_log(session, actor_id, "DELETE_SLOT", f"slot={slot_id}")


@upstream_guarded
async def list_doctor_slots(
    session: AsyncSession,
    doctor_id: UUID,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Sequence[Slot]:
    """Stored slots of a doctor, newest first."""
    return await slots_repo.list_by_doctor(
        session, doctor_id=doctor_id, start=start, end=end, newest_first=True
    )
