# app/core/errors.py
from __future__ import annotations


# Scheduling errors; routers map them to HTTP
class SchedulingError(Exception):
    """Base class for errors raised by the scheduling core."""


class NoShiftFound(SchedulingError):
    """
    Neither a temporary nor a weekly shift covers the requested date.
    Callers show an empty availability list, not an error.
    """


class InvalidTimeRange(SchedulingError):
    """A shift whose end does not come after its start."""


class SlotConflict(SchedulingError):
    """
    A reservation lost against another one for the same seat.
    Recoverable: re-query availability and pick another slot.
    """


class SlotNotFound(SchedulingError):
    pass


class ShiftNotFound(SchedulingError):
    pass


class AppointmentNotFound(SchedulingError):
    pass


class DoctorNotFound(SchedulingError):
    """Unknown doctor, or a doctor outside the caller's hospital."""


class UpstreamUnavailable(SchedulingError):
    """The shift / appointment store cannot be reached."""


class InvalidReservation(SchedulingError):
    """The appointment cannot be seated as asked (wrong doctor, already seated...)."""
