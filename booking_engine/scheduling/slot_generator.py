"""
Bookable start-time generation for a service on a given date.

Walks each open range of the day on a fixed grid, drops candidates that
overlap existing appointments or start inside the minimum-notice window,
and returns the union across ranges sorted ascending.

Usage:
    slots = available_slots(date(2026, 10, 20), service, hours, appointments)
    # ["09:00", "09:15", ...]
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, TypedDict

from booking_engine.config import settings
from booking_engine.schemas.appointment_schema import Appointment
from booking_engine.schemas.hours_schema import OperatingHours
from booking_engine.schemas.service_schema import Service
from booking_engine.scheduling.conflicts import (
    blocks_calendar,
    intervals_overlap,
    occupied_interval,
)
from booking_engine.utils import minutes_to_time, next_days, slot_datetime

logger = logging.getLogger(__name__)


class DateAvailability(TypedDict):
    """Summary of availability for a single date."""

    date: str
    day_name: str
    slot_count: int


def earliest_start(hours: OperatingHours, now: datetime) -> datetime:
    """First instant a booking may start given the minimum notice."""
    return now + timedelta(hours=hours.min_advance_hours)


def within_booking_window(on_date: date, hours: OperatingHours, now: datetime) -> bool:
    """
    Whole-day booking window check.

    A date is bookable if some part of it lies after the minimum-notice
    cutoff and it is no more than ``advance_booking_days`` after today.
    Individual slots on the first bookable day are re-checked against
    the exact cutoff by ``available_slots``.
    """
    first_day = earliest_start(hours, now).date()
    last_day = now.date() + timedelta(days=hours.advance_booking_days)
    return first_day <= on_date <= last_day


def _candidate_grid(
    on_date: date,
    service: Service,
    hours: OperatingHours,
    step_minutes: Optional[int],
) -> list[int]:
    day = hours.for_date(on_date)
    if not day.is_open:
        return []

    effective = service.effective_duration
    if step_minutes is None:
        step_minutes = settings.scheduling.slot_step_minutes
    step = min(step_minutes, effective)

    candidates: set[int] = set()
    for time_range in day.slots:
        start = time_range.start_minutes
        while start + effective <= time_range.end_minutes:
            candidates.add(start)
            start += step
    return sorted(candidates)


def available_slots(
    on_date: date,
    service: Service,
    hours: OperatingHours,
    existing_appointments: Iterable[Appointment],
    now: Optional[datetime] = None,
    symmetric_buffer: Optional[bool] = None,
    step_minutes: Optional[int] = None,
) -> list[str]:
    """
    Compute bookable start times for ``service`` on ``on_date``.

    Args:
        on_date: The requested calendar date.
        service: Service being booked; its duration plus buffer is reserved.
        hours: The business's operating hours and booking window.
        existing_appointments: Appointments of the business. Other dates and
            cancelled appointments are ignored.
        now: Current local wall-clock time. Defaults to ``datetime.now()``.
        symmetric_buffer: Also reserve existing appointments' buffer time.
            Defaults to the ``SYMMETRIC_BUFFER`` setting.
        step_minutes: Grid granularity. Defaults to ``SLOT_STEP_MINUTES``;
            capped at the service's effective duration.

    Returns:
        Ascending ``HH:MM`` start times. Empty when the business is not
        accepting appointments, the day is closed, the date is outside the
        booking window, or nothing fits.

    Raises:
        ValueError: If ``step_minutes`` is given and below 1.
    """
    if now is None:
        now = datetime.now()
    if symmetric_buffer is None:
        symmetric_buffer = settings.scheduling.symmetric_buffer
    if step_minutes is not None and step_minutes < 1:
        raise ValueError(f"step_minutes must be >= 1, got {step_minutes}")

    if not hours.accepting_appointments:
        logger.debug("Business %s is not accepting appointments", hours.business_id)
        return []
    if not within_booking_window(on_date, hours, now):
        logger.debug("%s is outside the booking window for %s", on_date, hours.business_id)
        return []

    candidates = _candidate_grid(on_date, service, hours, step_minutes)
    if not candidates:
        return []

    busy = [
        occupied_interval(appointment, symmetric_buffer)
        for appointment in existing_appointments
        if appointment.scheduled_date == on_date and blocks_calendar(appointment)
    ]
    cutoff = earliest_start(hours, now)
    effective = service.effective_duration

    slots = []
    for start in candidates:
        end = start + effective
        if any(intervals_overlap(start, end, busy_start, busy_end) for busy_start, busy_end in busy):
            continue
        value = minutes_to_time(start)
        if slot_datetime(on_date, value) < cutoff:
            continue
        slots.append(value)

    logger.debug(
        "%d slot(s) for service %s on %s (%d candidate(s), %d busy interval(s))",
        len(slots), service.id, on_date, len(candidates), len(busy),
    )
    return slots


def is_on_grid(
    on_date: date,
    value: str,
    service: Service,
    hours: OperatingHours,
    now: Optional[datetime] = None,
    step_minutes: Optional[int] = None,
) -> bool:
    """Return True if ``value`` would be offered on an empty calendar."""
    return value in available_slots(
        on_date, service, hours, [], now=now, step_minutes=step_minutes
    )


def available_dates(
    service: Service,
    hours: OperatingHours,
    existing_appointments: Iterable[Appointment],
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> list[DateAvailability]:
    """List upcoming dates inside the booking window that have free slots."""
    if now is None:
        now = datetime.now()
    appointments = list(existing_appointments)

    results: list[DateAvailability] = []
    for day in next_days(hours.advance_booking_days + 1, now.date()):
        slots = available_slots(day, service, hours, appointments, now=now)
        if slots:
            results.append(
                {
                    "date": day.isoformat(),
                    "day_name": day.strftime("%A"),
                    "slot_count": len(slots),
                }
            )
        if limit is not None and len(results) >= limit:
            break
    return results
