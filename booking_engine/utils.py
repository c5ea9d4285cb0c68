"""Time arithmetic and display helpers shared across the booking engine.

All times are business-local wall-clock values with no timezone attached.
"""

import re
from datetime import date, datetime, time, timedelta

from booking_engine.errors import InvalidTimeError

MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def time_to_minutes(value: str) -> int:
    """Convert a zero-padded 24-hour ``HH:MM`` string to minutes since midnight.

    Examples:
        >>> time_to_minutes("09:30")
        570
        >>> time_to_minutes("00:00")
        0

    Raises:
        InvalidTimeError: If the value is not a valid ``HH:MM`` time.
    """
    if not isinstance(value, str):
        raise InvalidTimeError(f"Time must be a 'HH:MM' string, got {value!r}")
    match = _TIME_PATTERN.match(value)
    if match is None:
        raise InvalidTimeError(f"Invalid time {value!r}, expected zero-padded 'HH:MM'")
    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to a zero-padded ``HH:MM`` string.

    Examples:
        >>> minutes_to_time(570)
        '09:30'

    Raises:
        InvalidTimeError: If minutes is not an int in ``[0, 1440)``.
    """
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise InvalidTimeError(f"Minutes must be an integer, got {minutes!r}")
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidTimeError(
            f"Minutes must be between 0 and {MINUTES_PER_DAY - 1}, got {minutes}"
        )
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def is_valid_time(value: str) -> bool:
    """Return True if value is a zero-padded 24-hour ``HH:MM`` string."""
    return isinstance(value, str) and _TIME_PATTERN.match(value) is not None


def slot_datetime(on_date: date, value: str) -> datetime:
    """Combine a calendar date and an ``HH:MM`` time into a naive datetime."""
    hours, mins = divmod(time_to_minutes(value), 60)
    return datetime.combine(on_date, time(hours, mins))


def format_time(value: str) -> str:
    """Format a 24-hour time for display.

    Examples:
        >>> format_time("14:00")
        '2:00 PM'
        >>> format_time("00:05")
        '12:05 AM'
    """
    hours, mins = divmod(time_to_minutes(value), 60)
    period = "PM" if hours >= 12 else "AM"
    display_hours = hours % 12 or 12
    return f"{display_hours}:{mins:02d} {period}"


def format_date(value: date) -> str:
    """Format a date as e.g. ``Monday, October 19, 2026``."""
    return f"{value.strftime('%A, %B')} {value.day}, {value.year}"


def next_days(count: int, today: date) -> list[date]:
    """Return ``count`` consecutive dates starting with ``today``."""
    return [today + timedelta(days=offset) for offset in range(max(count, 0))]
