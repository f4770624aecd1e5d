# app/modules/shifts/schemas.py
from __future__ import annotations

from datetime import datetime, time
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.core.clock import to_utc
from app.modules.shifts.models import ShiftName, ShiftStatus, WeekDay


class WeeklyShiftCreate(BaseModel):
    """
    end_time may be earlier than start_time: the shift then ends on the next day.
    """
    day: WeekDay
    start_time: time = Field(..., description="Wall-clock start, HH:MM")
    end_time: time = Field(..., description="Wall-clock end, HH:MM")
    shift_name: ShiftName = ShiftName.GENERAL
    status: ShiftStatus = ShiftStatus.ACTIVE


class WeeklyShiftUpdate(BaseModel):
    day: Optional[WeekDay] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    shift_name: Optional[ShiftName] = None
    status: Optional[ShiftStatus] = None


class WeeklyShiftPublic(BaseModel):
    id: UUID
    staff_id: UUID
    day: WeekDay
    shift_name: ShiftName
    start_time: time
    end_time: time
    status: ShiftStatus
    created_at: datetime

    class Config:
        from_attributes = True


class TemporaryShiftCreate(BaseModel):
    start_time: datetime = Field(..., description="ISO timestamp; naive values are UTC")
    end_time: datetime = Field(..., description="ISO timestamp; naive values are UTC")
    status: ShiftStatus = ShiftStatus.ACTIVE

    @field_validator("end_time")
    @classmethod
    def _end_after_start(cls, v, info):
        start = info.data.get("start_time")
        if start is not None:
            # naive and aware inputs compare as UTC
            if to_utc(v) <= to_utc(start):
                raise ValueError("end_time must be after start_time")
        return v


class TemporaryShiftPublic(BaseModel):
    id: UUID
    staff_id: UUID
    start_time: datetime
    end_time: datetime
    status: ShiftStatus
    created_at: datetime

    class Config:
        from_attributes = True


class StaffShifts(BaseModel):
    staff_id: UUID
    shifts: List[WeeklyShiftPublic]


class EffectiveShift(BaseModel):
    """
    Working interval in force for one doctor on one date.
    found=False means no shift of either kind covers the date.
    """
    found: bool
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    source: Optional[Literal["temporary", "weekly"]] = None
    shift_id: Optional[UUID] = None

    @classmethod
    def none(cls) -> "EffectiveShift":
        return cls(found=False)
