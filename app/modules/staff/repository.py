# app/modules/staff/repository.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.staff.models import HospitalStaff, StaffRole


async def get_staff_in_hospital(
    session: AsyncSession, *, staff_id: UUID, hospital_id: Optional[UUID]
) -> Optional[HospitalStaff]:
    """
    Staff member by id, restricted to a hospital.
    hospital_id=None means a platform-level caller and skips the tenant filter.
    """
    stmt = select(HospitalStaff).where(HospitalStaff.id == staff_id)
    if hospital_id is not None:
        stmt = stmt.where(HospitalStaff.hospital_id == hospital_id)
    return (await session.execute(stmt)).scalar_one_or_none()


async def get_doctor(
    session: AsyncSession, *, doctor_id: UUID, hospital_id: Optional[UUID]
) -> Optional[HospitalStaff]:
    """Active doctor by id inside the caller's hospital, or None."""
    staff = await get_staff_in_hospital(session, staff_id=doctor_id, hospital_id=hospital_id)
    if staff is None or staff.role != StaffRole.DOCTOR.value or not staff.is_active:
        return None
    return staff
