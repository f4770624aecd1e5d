# app/modules/staff/models.py
from __future__ import annotations

import datetime as dt
import uuid
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.clock import utcnow
from app.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    # Not a FK: actors may be service accounts unknown to this database
    actor_id: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True)
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    details: Mapped[Optional[str]] = mapped_column(Text)
    timestamp: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (Index("ix_audit_logs_timestamp", "timestamp"),)


class StaffRole(PyEnum):
    DOCTOR = "DOCTOR"
    NURSE = "NURSE"
    RECEPTIONIST = "RECEPTIONIST"
    HOSPITAL_ADMIN = "HOSPITAL_ADMIN"
    LAB_TECHNICIAN = "LAB_TECHNICIAN"


class HospitalStaff(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    Staff member of a hospital. Owned by staff management; the scheduler
    only reads it to check that a doctor exists inside the caller's hospital.
    """

    __tablename__ = "hospital_staff"

    hospital_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    specialisation: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    role: Mapped[str] = mapped_column(
        String(32), nullable=False, server_default=StaffRole.DOCTOR.value
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )

    __table_args__ = (
        Index("ix_hospital_staff_hospital_role", "hospital_id", "role"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
