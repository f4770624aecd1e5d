# tests/factories.py
import uuid
from datetime import date, datetime, time, timezone

from app.core.security import Capability, create_access_token
from app.modules.appointments.models import Appointment, ApptStatus
from app.modules.shifts.models import TemporaryShift, WeeklyShift
from app.modules.slots.models import Slot
from app.modules.staff.models import HospitalStaff, StaffRole

MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)
WEDNESDAY = date(2026, 10, 21)
THURSDAY = date(2026, 10, 22)

HOSPITAL_ID = uuid.UUID("00000000-0000-0000-0000-0000000000a1")
OTHER_HOSPITAL_ID = uuid.UUID("00000000-0000-0000-0000-0000000000b2")

ALL_CAPABILITIES = [c.value for c in Capability]


def utc(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)


def auth_headers(hospital_id=HOSPITAL_ID, scopes=None, subject=None):
    token = create_access_token(
        subject=str(subject or uuid.uuid4()),
        role="HOSPITAL_ADMIN",
        hospital_id=str(hospital_id) if hospital_id else None,
        scopes=ALL_CAPABILITIES if scopes is None else scopes,
    )
    return {"Authorization": f"Bearer {token}"}


async def make_doctor(session, hospital_id=HOSPITAL_ID, role=StaffRole.DOCTOR.value) -> HospitalStaff:
    doctor = HospitalStaff(
        hospital_id=hospital_id,
        first_name="Meera",
        last_name="Iyer",
        specialisation="Cardiology",
        role=role,
        is_active=True,
    )
    session.add(doctor)
    await session.flush()
    return doctor


async def make_weekly_shift(session, staff_id, day, start, end, status="ACTIVE") -> WeeklyShift:
    shift = WeeklyShift(staff_id=staff_id, day=day, start_time=start, end_time=end, status=status)
    session.add(shift)
    await session.flush()
    return shift


async def make_temporary_shift(session, staff_id, start, end, status="ACTIVE") -> TemporaryShift:
    shift = TemporaryShift(staff_id=staff_id, start_time=start, end_time=end, status=status)
    session.add(shift)
    await session.flush()
    return shift


async def make_appointment(session, doctor_id, scheduled_at) -> Appointment:
    appt = Appointment(
        patient_id=uuid.uuid4(),
        doctor_id=doctor_id,
        scheduled_at=scheduled_at,
        visit_type="OPD",
        status=ApptStatus.SCHEDULED.value,
    )
    session.add(appt)
    await session.flush()
    return appt


async def make_slot(session, doctor_id, time_slot, appointment1_id=None, appointment2_id=None) -> Slot:
    slot = Slot(
        doctor_id=doctor_id,
        time_slot=time_slot,
        appointment1_id=appointment1_id,
        appointment2_id=appointment2_id,
    )
    session.add(slot)
    await session.flush()
    return slot
