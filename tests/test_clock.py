# tests/test_clock.py
from datetime import date, datetime, time, timedelta, timezone

from app.core import clock


def test_naive_datetimes_are_read_as_utc():
    naive = datetime(2026, 10, 19, 9, 15)
    assert clock.to_utc(naive) == datetime(2026, 10, 19, 9, 15, tzinfo=timezone.utc)
    assert clock.wall_clock(naive) == "09:15"


def test_aware_datetimes_are_converted_to_utc():
    ist = timezone(timedelta(hours=5, minutes=30))
    moment = datetime(2026, 10, 19, 14, 45, tzinfo=ist)
    assert clock.to_utc(moment) == datetime(2026, 10, 19, 9, 15, tzinfo=timezone.utc)
    assert clock.wall_clock(moment) == "09:15"


def test_weekday_name():
    assert clock.weekday_name(date(2026, 10, 19)) == "MONDAY"
    assert clock.weekday_name(date(2026, 10, 25)) == "SUNDAY"


def test_day_window_in_utc_reference():
    start, end = clock.day_window(date(2026, 10, 19))
    assert start == datetime(2026, 10, 19, tzinfo=timezone.utc)
    assert end == datetime(2026, 10, 20, tzinfo=timezone.utc)


def test_reference_zone_drives_wall_clock(reference_tz):
    reference_tz("Asia/Kolkata")
    moment = datetime(2026, 10, 19, 3, 30, tzinfo=timezone.utc)
    assert clock.wall_clock(moment) == "09:00"
    assert clock.time_of_day(moment) == time(9, 0)
    assert clock.calendar_day(datetime(2026, 10, 19, 20, 0, tzinfo=timezone.utc)) == date(2026, 10, 20)

    start, end = clock.day_window(date(2026, 10, 19))
    assert start == datetime(2026, 10, 18, 18, 30, tzinfo=timezone.utc)
    assert end - start == timedelta(hours=24)
