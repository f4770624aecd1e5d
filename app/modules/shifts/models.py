# app/modules/shifts/models.py
from __future__ import annotations

import datetime as dt
import uuid
from enum import Enum as PyEnum

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Time
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class WeekDay(PyEnum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"


class ShiftName(PyEnum):
    GENERAL = "GENERAL"
    NIGHT = "NIGHT"


class ShiftStatus(PyEnum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class WeeklyShift(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    Recurring weekly working hours of a staff member.
    end_time <= start_time means the shift runs past midnight.
    """

    __tablename__ = "weekly_shifts"

    staff_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("hospital_staff.id", ondelete="CASCADE"),
        nullable=False,
    )
    day: Mapped[str] = mapped_column(String(10), nullable=False)
    shift_name: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ShiftName.GENERAL.value
    )
    start_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    end_time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=ShiftStatus.ACTIVE.value,
        server_default=ShiftStatus.ACTIVE.value,
    )

    __table_args__ = (
        CheckConstraint(
            "day IN ('MONDAY','TUESDAY','WEDNESDAY','THURSDAY','FRIDAY','SATURDAY','SUNDAY')",
            name="ck_weekly_shift_day",
        ),
        Index("ix_weekly_shift_staff_day", "staff_id", "day"),
    )


class TemporaryShift(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    One-off override pinned to a calendar day: on that day it replaces the
    staff member's weekly shift.
    """

    __tablename__ = "temporary_shifts"

    staff_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("hospital_staff.id", ondelete="CASCADE"),
        nullable=False,
    )
    start_time: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=ShiftStatus.ACTIVE.value,
        server_default=ShiftStatus.ACTIVE.value,
    )

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_temp_shift_time_order"),
        Index("ix_temp_shift_staff_start", "staff_id", "start_time"),
    )
