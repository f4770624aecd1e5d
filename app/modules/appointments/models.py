# app/modules/appointments/models.py
from __future__ import annotations

import datetime as dt
import uuid
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class ApptStatus(PyEnum):
    PENDING = "PENDING"
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    DIAGNOSED = "DIAGNOSED"


class VisitType(PyEnum):
    OPD = "OPD"
    IPD = "IPD"
    ER = "ER"
    FOLLOW_UP = "FOLLOW_UP"


class Appointment(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    Appointment with a doctor. scheduled_at mirrors the time_slot of the
    Slot seating it; the reservation service keeps both in step.
    """

    __tablename__ = "appointments"

    # Patients live in the patient registry; only the reference is kept here
    patient_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("hospital_staff.id", ondelete="RESTRICT"),
        nullable=False,
    )

    scheduled_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    visit_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default=VisitType.OPD.value
    )
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=ApptStatus.SCHEDULED.value,
        server_default=ApptStatus.SCHEDULED.value,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_appt_doctor_scheduled", "doctor_id", "scheduled_at"),
        Index("ix_appt_patient_scheduled", "patient_id", "scheduled_at"),
    )
