# app/modules/appointments/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.modules.appointments.models import ApptStatus, VisitType


class AppointmentCreateRequest(BaseModel):
    """
    Payload to book an appointment on a slot boundary.
    scheduled_at must be one of the boundaries returned by the availability
    endpoint; naive values are UTC.
    """
    doctor_id: UUID
    patient_id: UUID
    scheduled_at: datetime
    visit_type: VisitType = VisitType.OPD
    notes: Optional[str] = Field(default=None, max_length=2000)


class AppointmentRescheduleRequest(BaseModel):
    scheduled_at: datetime


class AppointmentPublic(BaseModel):
    """
    DTO returns a detailed appointment.
    """
    id: UUID
    patient_id: UUID
    doctor_id: UUID
    scheduled_at: datetime
    visit_type: VisitType
    status: ApptStatus
    notes: Optional[str] = None
    slot_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AppointmentListItem(BaseModel):
    """
    Used for lists
    """
    id: UUID
    patient_id: UUID
    doctor_id: UUID
    scheduled_at: datetime
    visit_type: VisitType
    status: ApptStatus
    created_at: datetime

    class Config:
        from_attributes = True


class AppointmentListPage(BaseModel):
    """
    Page the appointments list (with pagination).
    """
    items: List[AppointmentListItem]
    total: int
    limit: int
    offset: int
    has_next: bool
