# app/dependencies.py
from __future__ import annotations

from uuid import UUID

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permission import Principal, get_principal
from app.db.sql import get_session
from app.modules.staff.models import HospitalStaff
from app.modules.staff.repository import get_doctor, get_staff_in_hospital


async def get_scoped_doctor(
    doctor_id: UUID,
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(get_principal),
) -> HospitalStaff:
    """
    Path-param doctor, only if it belongs to the caller's hospital.
    Doctors of other hospitals are reported as missing, not forbidden.
    """
    doctor = await get_doctor(session, doctor_id=doctor_id, hospital_id=principal.hospital_id)
    if doctor is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="doctor_not_found",
        )
    return doctor


async def get_scoped_staff(
    staff_id: UUID,
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(get_principal),
) -> HospitalStaff:
    staff = await get_staff_in_hospital(session, staff_id=staff_id, hospital_id=principal.hospital_id)
    if staff is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="staff_not_found",
        )
    return staff
