# tests/test_generator.py
from datetime import date, datetime, time, timedelta, timezone

import pytest

from app.core.clock import wall_clock
from app.modules.slots.generator import generate_slot_boundaries, iter_slot_boundaries, shift_bounds

MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)


def labels(boundaries):
    return [wall_clock(b) for b in boundaries]


def test_morning_shift_gives_twelve_boundaries():
    boundaries = generate_slot_boundaries(MONDAY, time(9, 0), time(12, 0))
    assert len(boundaries) == 12
    assert labels(boundaries)[0] == "09:00"
    assert labels(boundaries)[-1] == "11:45"
    assert all(b.date() == MONDAY for b in boundaries)


def test_overnight_shift_runs_into_next_day():
    boundaries = generate_slot_boundaries(TUESDAY, time(22, 0), time(2, 0))
    assert len(boundaries) == 20
    names = labels(boundaries)
    assert names[:3] == ["22:00", "22:15", "22:30"]
    assert names[7:9] == ["23:45", "00:00"]
    assert names[-1] == "01:45"
    assert boundaries[0].date() == TUESDAY
    assert boundaries[-1].date() == TUESDAY + timedelta(days=1)


def test_boundaries_are_strictly_increasing_on_the_interval():
    boundaries = generate_slot_boundaries(TUESDAY, time(22, 0), time(2, 0))
    for earlier, later in zip(boundaries, boundaries[1:]):
        assert later - earlier == timedelta(minutes=15)


def test_shift_of_exactly_one_interval():
    assert labels(generate_slot_boundaries(MONDAY, time(9, 0), time(9, 15))) == ["09:00"]


def test_shift_shorter_than_one_interval_still_gets_its_start():
    assert labels(generate_slot_boundaries(MONDAY, time(9, 0), time(9, 10))) == ["09:00"]


def test_equal_start_and_end_is_a_full_day():
    boundaries = generate_slot_boundaries(MONDAY, time(8, 0), time(8, 0))
    assert len(boundaries) == 96
    assert labels(boundaries)[-1] == "07:45"


@pytest.mark.parametrize("interval", [0, -15])
def test_non_positive_interval_yields_nothing(interval):
    assert generate_slot_boundaries(MONDAY, time(9, 0), time(12, 0), interval) == []


def test_custom_interval():
    boundaries = generate_slot_boundaries(MONDAY, time(9, 0), time(10, 0), 30)
    assert labels(boundaries) == ["09:00", "09:30"]


def test_iterator_is_restartable():
    first = list(iter_slot_boundaries(MONDAY, time(9, 0), time(10, 0)))
    second = list(iter_slot_boundaries(MONDAY, time(9, 0), time(10, 0)))
    assert first == second


def test_shift_bounds_are_utc():
    start, end = shift_bounds(TUESDAY, time(22, 0), time(2, 0))
    assert start == datetime(2026, 10, 20, 22, 0, tzinfo=timezone.utc)
    assert end == datetime(2026, 10, 21, 2, 0, tzinfo=timezone.utc)


def test_boundaries_follow_reference_zone(reference_tz):
    reference_tz("Asia/Kolkata")
    boundaries = generate_slot_boundaries(MONDAY, time(9, 0), time(10, 0))
    assert labels(boundaries) == ["09:00", "09:15", "09:30", "09:45"]
    assert boundaries[0].astimezone(timezone.utc).hour == 3
