"""
Interval conflict detection against existing appointments.

Intervals are half-open ``[start, end)`` in minutes since midnight on a
single calendar date, so an appointment ending at 10:00 does not block a
booking starting at 10:00.

The candidate duration passed in already includes the new service's
buffer. Existing appointments contribute only their stored service
duration unless ``symmetric_buffer`` is enabled, in which case their
stored ``buffer_time`` is reserved as well.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from booking_engine.config import settings
from booking_engine.schemas.appointment_schema import Appointment, AppointmentStatus
from booking_engine.utils import time_to_minutes

logger = logging.getLogger(__name__)

# Statuses that no longer hold their calendar interval
NON_BLOCKING_STATUSES = frozenset({AppointmentStatus.CANCELLED})


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Return True if ``[start_a, end_a)`` and ``[start_b, end_b)`` intersect."""
    return start_a < end_b and start_b < end_a


def blocks_calendar(appointment: Appointment) -> bool:
    return appointment.status not in NON_BLOCKING_STATUSES


def occupied_interval(appointment: Appointment, symmetric_buffer: bool = False) -> tuple[int, int]:
    """Return the ``(start, end)`` minutes an existing appointment occupies."""
    end = appointment.end_minutes
    if symmetric_buffer:
        end += appointment.buffer_time
    return appointment.start_minutes, end


def find_conflicts(
    on_date: date,
    candidate_start: str,
    candidate_duration: int,
    existing: Iterable[Appointment],
    symmetric_buffer: Optional[bool] = None,
) -> list[Appointment]:
    """
    Return every existing appointment that overlaps the candidate interval.

    Args:
        on_date: Calendar date of the candidate booking.
        candidate_start: Candidate start time as ``HH:MM``.
        candidate_duration: Minutes the candidate occupies (service + buffer).
        existing: Appointments to check against; other dates are ignored.
        symmetric_buffer: Reserve existing appointments' buffer time too.
            Defaults to the ``SYMMETRIC_BUFFER`` setting.
    """
    if symmetric_buffer is None:
        symmetric_buffer = settings.scheduling.symmetric_buffer

    start = time_to_minutes(candidate_start)
    end = start + candidate_duration

    found = []
    for appointment in existing:
        if appointment.scheduled_date != on_date or not blocks_calendar(appointment):
            continue
        apt_start, apt_end = occupied_interval(appointment, symmetric_buffer)
        if intervals_overlap(start, end, apt_start, apt_end):
            found.append(appointment)
    return found


def conflicts(
    on_date: date,
    candidate_start: str,
    candidate_duration: int,
    existing: Iterable[Appointment],
    symmetric_buffer: Optional[bool] = None,
) -> bool:
    """Return True if the candidate overlaps any non-cancelled appointment that day."""
    return bool(
        find_conflicts(on_date, candidate_start, candidate_duration, existing, symmetric_buffer)
    )
