# app/modules/slots/repository.py
from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import to_utc
from app.core.errors import SlotConflict
from app.modules.slots.models import Slot


async def get_slot(session: AsyncSession, slot_id: UUID) -> Optional[Slot]:
    return await session.get(Slot, slot_id)


async def get_slot_at(
    session: AsyncSession, *, doctor_id: UUID, time_slot: datetime
) -> Optional[Slot]:
    stmt = select(Slot).where(
        Slot.doctor_id == doctor_id,
        Slot.time_slot == to_utc(time_slot),
    )
    return (await session.execute(stmt)).scalar_one_or_none()


async def find_slot_by_appointment(
    session: AsyncSession, appointment_id: UUID
) -> Optional[Slot]:
    stmt = select(Slot).where(
        or_(Slot.appointment1_id == appointment_id, Slot.appointment2_id == appointment_id)
    )
    return (await session.execute(stmt)).scalars().first()


async def list_by_doctor(
    session: AsyncSession,
    *,
    doctor_id: UUID,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    newest_first: bool = False,
) -> Sequence[Slot]:
    """Slots of a doctor with time_slot in [start, end)."""
    stmt = select(Slot).where(Slot.doctor_id == doctor_id)
    if start is not None:
        stmt = stmt.where(Slot.time_slot >= to_utc(start))
    if end is not None:
        stmt = stmt.where(Slot.time_slot < to_utc(end))
    ordering = Slot.time_slot.desc() if newest_first else Slot.time_slot.asc()
    stmt = stmt.order_by(ordering, Slot.created_at)
    return (await session.execute(stmt)).scalars().all()


async def insert_slot(
    session: AsyncSession,
    *,
    doctor_id: UUID,
    time_slot: datetime,
    appointment1_id: Optional[UUID] = None,
) -> Slot:
    """
    Insert a slot inside a savepoint. A concurrent insert for the same
    doctor and instant hits uq_slot_doctor_time and becomes SlotConflict.
    """
    slot = Slot(
        doctor_id=doctor_id,
        time_slot=to_utc(time_slot),
        appointment1_id=appointment1_id,
    )
    try:
        async with session.begin_nested():
            session.add(slot)
            await session.flush()
    except IntegrityError as exc:
        raise SlotConflict("slot_taken") from exc
    return slot


async def fill_free_seat(session: AsyncSession, slot: Slot, appointment_id: UUID) -> bool:
    """
    Compare-and-swap the first free seat of `slot` to `appointment_id`.
    Returns False when another writer took the seat first.
    """
    column = Slot.appointment1_id if slot.appointment1_id is None else Slot.appointment2_id
    stmt = (
        update(Slot)
        .where(Slot.id == slot.id, column.is_(None))
        .values({column.key: appointment_id})
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    await session.refresh(slot)
    return (res.rowcount or 0) == 1  # type: ignore


async def release_seat(session: AsyncSession, slot: Slot, appointment_id: UUID) -> bool:
    """
    Remove an appointment from its seat. The second seat moves up when the
    first one frees, so a PARTIAL slot always holds appointment1.
    """
    if slot.appointment1_id == appointment_id:
        slot.appointment1_id = slot.appointment2_id
        slot.appointment2_id = None
    elif slot.appointment2_id == appointment_id:
        slot.appointment2_id = None
    else:
        return False
    await session.flush()
    return True


async def set_slot_time(session: AsyncSession, slot: Slot, time_slot: datetime) -> Slot:
    try:
        async with session.begin_nested():
            slot.time_slot = to_utc(time_slot)
            await session.flush()
    except IntegrityError as exc:
        raise SlotConflict("slot_taken") from exc
    return slot


async def delete_slot(session: AsyncSession, slot_id: UUID) -> int:
    res = await session.execute(delete(Slot).where(Slot.id == slot_id))
    return res.rowcount or 0  # type: ignore
