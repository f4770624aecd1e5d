# app/routers/appointments.py
from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AppointmentNotFound, InvalidReservation, SlotConflict
from app.core.permission import Principal, require_capability
from app.core.security import Capability
from app.db.sql import get_session
from app.dependencies import get_scoped_doctor
from app.modules.appointments.schemas import (
    AppointmentCreateRequest,
    AppointmentListPage,
    AppointmentPublic,
    AppointmentRescheduleRequest,
)
from app.modules.appointments.service import (
    book_appointment_svc,
    cancel_appointment_svc,
    get_appointment_svc,
    list_appointments_by_doctor_svc,
    reschedule_appointment_svc,
)
from app.modules.staff.models import HospitalStaff
from app.modules.staff.repository import get_doctor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["appointments"])


async def _appointment_in_scope(session: AsyncSession, appointment_id: UUID, principal: Principal):
    try:
        appt = await get_appointment_svc(session, appointment_id)
    except AppointmentNotFound:
        appt = None
    if appt is None or await get_doctor(
        session, doctor_id=appt.doctor_id, hospital_id=principal.hospital_id
    ) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="appointment_not_found",
        )
    return appt


# Implement /appointments (POST)
@router.post(
    "/appointments",
    response_model=AppointmentPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment on an available or partially booked slot",
)
async def appointments_create(
    payload: AppointmentCreateRequest,
    principal: Principal = Depends(require_capability(Capability.APPOINTMENTS_WRITE)),
    session: AsyncSession = Depends(get_session),
):
    if await get_doctor(session, doctor_id=payload.doctor_id, hospital_id=principal.hospital_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="doctor_not_found")
    try:
        return await book_appointment_svc(session, payload, principal.actor_id)
    except SlotConflict as e:
        logger.info("Booking conflict for doctor %s at %s: %s", payload.doctor_id, payload.scheduled_at, e)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e) or "appointment_conflict",
        )
    except InvalidReservation as e:
        raise HTTPException(status_code=422, detail=str(e))


# Implement /appointments/{id}/cancel (PUT)
@router.put(
    "/appointments/{appointment_id}/cancel",
    response_model=AppointmentPublic,
    summary="Cancel an appointment and free its seat",
)
async def appointments_cancel(
    appointment_id: UUID,
    principal: Principal = Depends(require_capability(Capability.APPOINTMENTS_WRITE)),
    session: AsyncSession = Depends(get_session),
):
    await _appointment_in_scope(session, appointment_id, principal)
    return await cancel_appointment_svc(session, appointment_id, principal.actor_id)


# Implement /appointments/{id}/reschedule (PUT)
@router.put(
    "/appointments/{appointment_id}/reschedule",
    response_model=AppointmentPublic,
    summary="Move an appointment to another slot boundary",
)
async def appointments_reschedule(
    appointment_id: UUID,
    payload: AppointmentRescheduleRequest,
    principal: Principal = Depends(require_capability(Capability.APPOINTMENTS_WRITE)),
    session: AsyncSession = Depends(get_session),
):
    await _appointment_in_scope(session, appointment_id, principal)
    try:
        return await reschedule_appointment_svc(
            session, appointment_id, payload.scheduled_at, principal.actor_id
        )
    except SlotConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e) or "appointment_conflict")
    except InvalidReservation as e:
        raise HTTPException(status_code=422, detail=str(e))


# Implement /appointments/doctor/{id} (GET)
@router.get(
    "/appointments/doctor/{doctor_id}",
    response_model=AppointmentListPage,
    summary="Upcoming appointments of a doctor",
)
async def appointments_for_doctor(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    _: Principal = Depends(require_capability(Capability.SCHEDULE_READ)),
    doctor: HospitalStaff = Depends(get_scoped_doctor),
    session: AsyncSession = Depends(get_session),
):
    return await list_appointments_by_doctor_svc(
        session,
        doctor_id=doctor.id,
        limit=limit,
        offset=offset,
    )
