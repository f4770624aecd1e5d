# app/modules/slots/models.py
from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class Slot(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    Booking container for one 15-minute boundary of one doctor.
    Holds at most two appointments (appointment1, appointment2).
    Empty slots are kept when their appointments move away.
    """

    __tablename__ = "slots"

    doctor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("hospital_staff.id", ondelete="CASCADE"),
        nullable=False,
    )
    time_slot: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    appointment1_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("appointments.id", ondelete="SET NULL"),
        nullable=True,
    )
    appointment2_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("appointments.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        # First-seat race backstop: one slot per doctor and instant
        UniqueConstraint("doctor_id", "time_slot", name="uq_slot_doctor_time"),
        CheckConstraint(
            "appointment1_id IS NULL OR appointment2_id IS NULL "
            "OR appointment1_id <> appointment2_id",
            name="ck_slot_distinct_seats",
        ),
        Index("ix_slot_appointment1", "appointment1_id"),
        Index("ix_slot_appointment2", "appointment2_id"),
    )

    @property
    def seats_taken(self) -> int:
        return sum(1 for a in (self.appointment1_id, self.appointment2_id) if a is not None)

    def holds(self, appointment_id: uuid.UUID) -> bool:
        return appointment_id in (self.appointment1_id, self.appointment2_id)
