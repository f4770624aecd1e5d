# app/routers/slots.py
from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    AppointmentNotFound,
    InvalidReservation,
    SlotConflict,
    SlotNotFound,
)
from app.core.permission import Principal, require_capability
from app.core.security import Capability
from app.db.sql import get_session
from app.dependencies import get_scoped_doctor
from app.modules.appointments.models import Appointment
from app.modules.slots import repository as slots_repo
from app.modules.slots import service as slot_service
from app.modules.slots.availability import get_doctor_availability
from app.modules.slots.schemas import (
    DoctorAvailability,
    RescheduleRequest,
    SlotAttachRequest,
    SlotPublic,
    SlotReserveRequest,
    SlotTimeUpdate,
)
from app.modules.staff.models import HospitalStaff
from app.modules.staff.repository import get_doctor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["slots"])


def _conflict(exc: SlotConflict) -> HTTPException:
    # Recoverable: the client re-polls availability and picks another slot
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc) or "slot_conflict")


async def _slot_in_scope(session: AsyncSession, slot_id: UUID, principal: Principal):
    slot = await slots_repo.get_slot(session, slot_id)
    if slot is not None:
        doctor = await get_doctor(session, doctor_id=slot.doctor_id, hospital_id=principal.hospital_id)
        if doctor is not None:
            return slot
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="slot_not_found")


@router.get(
    "/doctors/{doctor_id}/availability",
    response_model=DoctorAvailability,
    summary="15-minute slots of a doctor's effective shift for one date",
)
async def doctor_availability(
    date: dt.date = Query(..., description="Calendar date, YYYY-MM-DD"),
    _: Principal = Depends(require_capability(Capability.SCHEDULE_READ)),
    doctor: HospitalStaff = Depends(get_scoped_doctor),
    session: AsyncSession = Depends(get_session),
):
    # No shift is an empty list, not an error
    return await get_doctor_availability(session, doctor.id, date)


@router.get(
    "/doctors/{doctor_id}/slots",
    response_model=List[SlotPublic],
    summary="Stored slots of a doctor (newest first)",
)
async def doctor_slots(
    start: Optional[dt.datetime] = Query(None),
    end: Optional[dt.datetime] = Query(None),
    _: Principal = Depends(require_capability(Capability.SCHEDULE_READ)),
    doctor: HospitalStaff = Depends(get_scoped_doctor),
    session: AsyncSession = Depends(get_session),
):
    return await slot_service.list_doctor_slots(session, doctor.id, start, end)


@router.post(
    "/doctors/{doctor_id}/slots",
    response_model=SlotPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Open a slot with its first appointment",
)
async def reserve_slot(
    payload: SlotReserveRequest,
    principal: Principal = Depends(require_capability(Capability.SCHEDULE_WRITE)),
    doctor: HospitalStaff = Depends(get_scoped_doctor),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await slot_service.reserve_new_slot(
            session, doctor.id, payload.time_slot, payload.appointment_id,
            actor_id=principal.actor_id,
        )
    except SlotConflict as e:
        logger.info("Reserve lost for doctor %s at %s: %s", doctor.id, payload.time_slot, e)
        raise _conflict(e)
    except AppointmentNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="appointment_not_found")
    except InvalidReservation as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.patch(
    "/slots/reschedule",
    summary="Move an appointment (and its seat) to another time",
)
async def reschedule_slot(
    payload: RescheduleRequest,
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_capability(Capability.SCHEDULE_WRITE)),
):
    appointment = await session.get(Appointment, payload.appointment_id)
    if appointment is None or await get_doctor(
        session, doctor_id=appointment.doctor_id, hospital_id=principal.hospital_id
    ) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="appointment_not_found")
    try:
        appointment = await slot_service.reschedule_appointment(
            session, payload.appointment_id, payload.time_slot,
            actor_id=principal.actor_id,
        )
    except AppointmentNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="appointment_not_found")
    except SlotConflict as e:
        raise _conflict(e)
    except InvalidReservation as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"appointment_id": appointment.id, "scheduled_at": appointment.scheduled_at}


@router.patch(
    "/slots/{slot_id}/attach",
    response_model=SlotPublic,
    summary="Put a second appointment into a partially booked slot",
)
async def attach_to_slot(
    slot_id: UUID,
    payload: SlotAttachRequest,
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_capability(Capability.SCHEDULE_WRITE)),
):
    await _slot_in_scope(session, slot_id, principal)
    try:
        return await slot_service.attach_second_appointment(
            session, slot_id, payload.appointment_id, actor_id=principal.actor_id
        )
    except SlotConflict as e:
        logger.info("Attach lost on slot %s: %s", slot_id, e)
        raise _conflict(e)
    except (SlotNotFound, AppointmentNotFound) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidReservation as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.patch(
    "/slots/{slot_id}/time",
    response_model=SlotPublic,
    summary="Administrative edit of a slot's time",
)
async def update_slot_time(
    slot_id: UUID,
    payload: SlotTimeUpdate,
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_capability(Capability.SCHEDULE_WRITE)),
):
    await _slot_in_scope(session, slot_id, principal)
    try:
        return await slot_service.update_slot_time(
            session, slot_id, payload.time_slot, actor_id=principal.actor_id
        )
    except SlotNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="slot_not_found")
    except SlotConflict as e:
        raise _conflict(e)


@router.delete(
    "/slots/{slot_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an empty slot",
)
async def delete_slot(
    slot_id: UUID,
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_capability(Capability.SCHEDULE_WRITE)),
):
    await _slot_in_scope(session, slot_id, principal)
    try:
        await slot_service.delete_slot(session, slot_id, actor_id=principal.actor_id)
    except SlotNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="slot_not_found")
    except SlotConflict as e:
        raise _conflict(e)
    return None
