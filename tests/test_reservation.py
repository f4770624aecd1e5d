# tests/test_reservation.py
from datetime import time

import pytest
from sqlalchemy import select

from app.core.clock import to_utc
from app.core.errors import InvalidReservation, SlotConflict, SlotNotFound
from app.modules.appointments.models import ApptStatus
from app.modules.slots import repository as slots_repo
from app.modules.slots import service
from app.modules.slots.availability import get_doctor_availability
from app.modules.slots.models import Slot
from app.modules.slots.schemas import SlotStatus
from app.modules.staff.models import AuditLog
from tests.factories import MONDAY, make_appointment, make_doctor, make_slot, make_weekly_shift, utc


@pytest.fixture
async def doctor(session):
    doctor = await make_doctor(session)
    await make_weekly_shift(session, doctor.id, "MONDAY", time(9, 0), time(12, 0))
    return doctor


async def status_at(session, doctor_id, label):
    availability = await get_doctor_availability(session, doctor_id, MONDAY)
    return next(e for e in availability.slots if e.time == label)


async def test_reserve_new_slot_seats_first_appointment(session, doctor):
    appt = await make_appointment(session, doctor.id, utc(MONDAY, 9, 30))

    slot = await service.reserve_new_slot(session, doctor.id, utc(MONDAY, 9, 30), appt.id)

    assert slot.appointment1_id == appt.id
    assert slot.appointment2_id is None
    entry = await status_at(session, doctor.id, "09:30")
    assert entry.status is SlotStatus.PARTIAL
    assert entry.slot_id == slot.id


async def test_reserve_on_occupied_boundary_conflicts(session, doctor):
    first = await make_appointment(session, doctor.id, utc(MONDAY, 9, 30))
    second = await make_appointment(session, doctor.id, utc(MONDAY, 9, 30))
    await service.reserve_new_slot(session, doctor.id, utc(MONDAY, 9, 30), first.id)

    with pytest.raises(SlotConflict):
        await service.reserve_new_slot(session, doctor.id, utc(MONDAY, 9, 30), second.id)


async def test_reserve_reuses_empty_leftover_slot(session, doctor):
    empty = await make_slot(session, doctor.id, utc(MONDAY, 9, 45))
    appt = await make_appointment(session, doctor.id, utc(MONDAY, 9, 45))

    slot = await service.reserve_new_slot(session, doctor.id, utc(MONDAY, 9, 45), appt.id)

    assert slot.id == empty.id
    assert slot.appointment1_id == appt.id


async def test_reserve_rejects_appointment_of_another_doctor(session, doctor):
    other = await make_doctor(session)
    appt = await make_appointment(session, other.id, utc(MONDAY, 9, 30))

    with pytest.raises(InvalidReservation):
        await service.reserve_new_slot(session, doctor.id, utc(MONDAY, 9, 30), appt.id)


async def test_attach_second_fills_slot_then_conflicts(session, doctor):
    first = await make_appointment(session, doctor.id, utc(MONDAY, 10))
    slot = await make_slot(session, doctor.id, utc(MONDAY, 10), appointment1_id=first.id)

    entry = await status_at(session, doctor.id, "10:00")
    assert entry.status is SlotStatus.PARTIAL
    assert entry.slot_id == slot.id

    second = await make_appointment(session, doctor.id, utc(MONDAY, 10))
    attached = await service.attach_second_appointment(session, entry.slot_id, second.id)
    assert attached.appointment2_id == second.id
    assert (await status_at(session, doctor.id, "10:00")).status is SlotStatus.FULL

    third = await make_appointment(session, doctor.id, utc(MONDAY, 10))
    with pytest.raises(SlotConflict):
        await service.attach_second_appointment(session, slot.id, third.id)


async def test_attach_same_appointment_twice_conflicts(session, doctor):
    appt = await make_appointment(session, doctor.id, utc(MONDAY, 10))
    slot = await make_slot(session, doctor.id, utc(MONDAY, 10), appointment1_id=appt.id)

    with pytest.raises(SlotConflict):
        await service.attach_second_appointment(session, slot.id, appt.id)


async def test_attach_to_unknown_slot(session, doctor):
    appt = await make_appointment(session, doctor.id, utc(MONDAY, 10))
    with pytest.raises(SlotNotFound):
        await service.attach_second_appointment(session, doctor.id, appt.id)


async def test_reschedule_sole_occupant_moves_the_slot(session, doctor):
    appt = await make_appointment(session, doctor.id, utc(MONDAY, 9))
    slot = await service.reserve_new_slot(session, doctor.id, utc(MONDAY, 9), appt.id)

    moved = await service.reschedule_appointment(session, appt.id, utc(MONDAY, 11))

    assert to_utc(moved.scheduled_at) == utc(MONDAY, 11)
    await session.refresh(slot)
    assert to_utc(slot.time_slot) == utc(MONDAY, 11)
    assert (await status_at(session, doctor.id, "09:00")).status is SlotStatus.AVAILABLE
    assert (await status_at(session, doctor.id, "11:00")).status is SlotStatus.PARTIAL


async def test_reschedule_out_of_full_slot_leaves_partner_seated(session, doctor):
    first = await make_appointment(session, doctor.id, utc(MONDAY, 10))
    second = await make_appointment(session, doctor.id, utc(MONDAY, 10))
    slot = await make_slot(
        session, doctor.id, utc(MONDAY, 10), appointment1_id=first.id, appointment2_id=second.id
    )

    await service.reschedule_appointment(session, first.id, utc(MONDAY, 10, 30))

    await session.refresh(slot)
    assert slot.appointment1_id == second.id
    assert slot.appointment2_id is None
    assert (await status_at(session, doctor.id, "10:00")).status is SlotStatus.PARTIAL
    target = await status_at(session, doctor.id, "10:30")
    assert target.status is SlotStatus.PARTIAL
    assert target.slot_id != slot.id


async def test_reschedule_into_full_slot_changes_nothing(session, doctor):
    a = await make_appointment(session, doctor.id, utc(MONDAY, 11))
    b = await make_appointment(session, doctor.id, utc(MONDAY, 11))
    await make_slot(session, doctor.id, utc(MONDAY, 11), appointment1_id=a.id, appointment2_id=b.id)
    mover = await make_appointment(session, doctor.id, utc(MONDAY, 9))
    own = await service.reserve_new_slot(session, doctor.id, utc(MONDAY, 9), mover.id)

    with pytest.raises(SlotConflict):
        await service.reschedule_appointment(session, mover.id, utc(MONDAY, 11))

    await session.refresh(mover)
    await session.refresh(own)
    assert to_utc(mover.scheduled_at) == utc(MONDAY, 9)
    assert own.appointment1_id == mover.id


async def test_reschedule_to_current_time_is_a_no_op(session, doctor):
    appt = await make_appointment(session, doctor.id, utc(MONDAY, 9))
    slot = await service.reserve_new_slot(session, doctor.id, utc(MONDAY, 9), appt.id)

    await service.reschedule_appointment(session, appt.id, utc(MONDAY, 9))

    await session.refresh(slot)
    assert slot.appointment1_id == appt.id


async def test_update_slot_time_moves_seated_appointments(session, doctor):
    a = await make_appointment(session, doctor.id, utc(MONDAY, 10))
    b = await make_appointment(session, doctor.id, utc(MONDAY, 10))
    slot = await make_slot(
        session, doctor.id, utc(MONDAY, 10), appointment1_id=a.id, appointment2_id=b.id
    )

    await service.update_slot_time(session, slot.id, utc(MONDAY, 11, 15))

    for appt in (a, b):
        await session.refresh(appt)
        assert to_utc(appt.scheduled_at) == utc(MONDAY, 11, 15)
    assert (await status_at(session, doctor.id, "11:15")).status is SlotStatus.FULL
    assert (await status_at(session, doctor.id, "10:00")).status is SlotStatus.AVAILABLE


async def test_update_slot_time_onto_occupied_slot_conflicts(session, doctor):
    slot = await make_slot(session, doctor.id, utc(MONDAY, 10))
    appt = await make_appointment(session, doctor.id, utc(MONDAY, 10, 15))
    await make_slot(session, doctor.id, utc(MONDAY, 10, 15), appointment1_id=appt.id)

    with pytest.raises(SlotConflict):
        await service.update_slot_time(session, slot.id, utc(MONDAY, 10, 15))


async def test_update_slot_time_drops_empty_leftover_at_target(session, doctor):
    appt = await make_appointment(session, doctor.id, utc(MONDAY, 10))
    slot = await make_slot(session, doctor.id, utc(MONDAY, 10), appointment1_id=appt.id)
    leftover = await make_slot(session, doctor.id, utc(MONDAY, 10, 15))

    await service.update_slot_time(session, slot.id, utc(MONDAY, 10, 15))

    remaining = (await session.execute(select(Slot.id))).scalars().all()
    assert remaining == [slot.id]
    assert leftover.id not in remaining
    entry = await status_at(session, doctor.id, "10:15")
    assert entry.status is SlotStatus.PARTIAL
    assert entry.slot_id == slot.id


async def test_release_compacts_seats(session, doctor):
    a = await make_appointment(session, doctor.id, utc(MONDAY, 10))
    b = await make_appointment(session, doctor.id, utc(MONDAY, 10))
    slot = await make_slot(
        session, doctor.id, utc(MONDAY, 10), appointment1_id=a.id, appointment2_id=b.id
    )

    released = await service.release_appointment(session, a.id)

    assert released.id == slot.id
    assert (slot.appointment1_id, slot.appointment2_id) == (b.id, None)

    await service.release_appointment(session, b.id)
    assert slot.seats_taken == 0
    assert (await status_at(session, doctor.id, "10:00")).status is SlotStatus.AVAILABLE


async def test_delete_slot_only_when_empty(session, doctor):
    appt = await make_appointment(session, doctor.id, utc(MONDAY, 10))
    busy = await make_slot(session, doctor.id, utc(MONDAY, 10), appointment1_id=appt.id)
    empty = await make_slot(session, doctor.id, utc(MONDAY, 10, 15))

    with pytest.raises(SlotConflict):
        await service.delete_slot(session, busy.id)

    await service.delete_slot(session, empty.id)
    remaining = (await session.execute(select(Slot.id))).scalars().all()
    assert remaining == [busy.id]


async def test_writes_are_audited(session, doctor):
    actor = doctor.id
    first = await make_appointment(session, doctor.id, utc(MONDAY, 10))
    second = await make_appointment(session, doctor.id, utc(MONDAY, 10))
    slot = await service.reserve_new_slot(session, doctor.id, utc(MONDAY, 10), first.id, actor_id=actor)
    await service.attach_second_appointment(session, slot.id, second.id, actor_id=actor)

    actions = (
        await session.execute(select(AuditLog.action).where(AuditLog.actor_id == actor))
    ).scalars().all()
    assert sorted(actions) == ["ATTACH_SLOT", "RESERVE_SLOT"]


async def cancelled_appointment(session, doctor_id, moment):
    appt = await make_appointment(session, doctor_id, moment)
    appt.status = ApptStatus.CANCELLED.value
    await session.flush()
    return appt


async def test_cancelled_appointment_cannot_open_a_slot(session, doctor):
    appt = await cancelled_appointment(session, doctor.id, utc(MONDAY, 9, 30))

    with pytest.raises(InvalidReservation, match="appointment_cancelled"):
        await service.reserve_new_slot(session, doctor.id, utc(MONDAY, 9, 30), appt.id)

    assert await slots_repo.find_slot_by_appointment(session, appt.id) is None
    assert (await status_at(session, doctor.id, "09:30")).status is SlotStatus.AVAILABLE


async def test_cancelled_appointment_cannot_take_second_seat(session, doctor):
    first = await make_appointment(session, doctor.id, utc(MONDAY, 10))
    slot = await make_slot(session, doctor.id, utc(MONDAY, 10), appointment1_id=first.id)
    appt = await cancelled_appointment(session, doctor.id, utc(MONDAY, 10))

    with pytest.raises(InvalidReservation, match="appointment_cancelled"):
        await service.attach_second_appointment(session, slot.id, appt.id)

    await session.refresh(slot)
    assert slot.appointment2_id is None


async def test_cancelled_appointment_cannot_be_rescheduled(session, doctor):
    appt = await cancelled_appointment(session, doctor.id, utc(MONDAY, 9))

    with pytest.raises(InvalidReservation, match="appointment_cancelled"):
        await service.reschedule_appointment(session, appt.id, utc(MONDAY, 11))

    assert await slots_repo.find_slot_by_appointment(session, appt.id) is None
    assert (await status_at(session, doctor.id, "11:00")).status is SlotStatus.AVAILABLE
