# app/modules/slots/reconciler.py
from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from app.core import clock
from app.core.errors import NoShiftFound
from app.modules.shifts.schemas import EffectiveShift
from app.modules.slots.generator import generate_slot_boundaries
from app.modules.slots.models import Slot
from app.modules.slots.schemas import SlotAvailability, SlotStatus


def slot_status(slot: Optional[Slot]) -> SlotStatus:
    if slot is None:
        return SlotStatus.AVAILABLE
    taken = slot.seats_taken
    if taken >= 2:
        return SlotStatus.FULL
    if taken == 1:
        return SlotStatus.PARTIAL
    # empty leftover slot
    return SlotStatus.AVAILABLE


def classify_slots(
    doctor_id: UUID,
    day: date,
    shift: EffectiveShift,
    booked_slots: Sequence[Slot],
    interval_minutes: Optional[int] = None,
) -> List[SlotAvailability]:
    """
    Map stored slots onto the boundaries of the effective shift.

    Matching is by wall-clock time of day, rendered identically on both
    sides, so `booked_slots` must come from a window no longer than 24h
    (the shift's own span). Slots of other doctors are ignored; the first
    stored slot per time of day wins.
    """
    if not shift.found:
        raise NoShiftFound("no_shift_for_date")

    by_time: Dict[str, Slot] = {}
    for slot in booked_slots:
        if slot.doctor_id != doctor_id:
            continue
        by_time.setdefault(clock.wall_clock(slot.time_slot), slot)

    result: List[SlotAvailability] = []
    for boundary in generate_slot_boundaries(day, shift.start_time, shift.end_time, interval_minutes):
        label = clock.wall_clock(boundary)
        match = by_time.get(label)
        status = slot_status(match)
        result.append(
            SlotAvailability(
                time=label,
                starts_at=boundary,
                status=status,
                slot_id=match.id if match is not None and status is not SlotStatus.AVAILABLE else None,
            )
        )
    return result
