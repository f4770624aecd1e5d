# app/modules/slots/schemas.py
from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SlotStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    PARTIAL = "PARTIAL"
    FULL = "FULL"


class SlotAvailability(BaseModel):
    """
    One boundary of the effective shift and how many seats are taken.
    slot_id is set for PARTIAL / FULL boundaries.
    """
    time: str = Field(..., description="Wall-clock HH:MM in the reference zone")
    starts_at: dt.datetime
    status: SlotStatus
    slot_id: Optional[UUID] = None


class DoctorAvailability(BaseModel):
    doctor_id: UUID
    date: dt.date
    shift_found: bool
    source: Optional[str] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    slots: List[SlotAvailability] = Field(default_factory=list)


class SlotPublic(BaseModel):
    id: UUID
    doctor_id: UUID
    time_slot: dt.datetime
    appointment1_id: Optional[UUID] = None
    appointment2_id: Optional[UUID] = None
    created_at: dt.datetime
    updated_at: dt.datetime

    class Config:
        from_attributes = True


class SlotReserveRequest(BaseModel):
    time_slot: dt.datetime = Field(..., description="ISO timestamp of the boundary")
    appointment_id: UUID


class SlotAttachRequest(BaseModel):
    appointment_id: UUID


class SlotTimeUpdate(BaseModel):
    time_slot: dt.datetime


class RescheduleRequest(BaseModel):
    appointment_id: UUID
    time_slot: dt.datetime
