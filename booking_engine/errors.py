"""Exception hierarchy for the booking engine.

Configuration problems and illegal lifecycle moves are programmer errors
and propagate. An empty slot list is a normal result, not an error.
``SlotConflictError`` is the one condition callers are expected to retry.
"""

from typing import Optional


class BookingError(Exception):
    """Base class for all booking engine errors."""


class InvalidTimeError(BookingError, ValueError):
    """Raised for malformed or out-of-range wall-clock times."""


class RecordNotFoundError(BookingError, KeyError):
    """Raised when a store lookup misses."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""


class DuplicateRecordError(BookingError):
    """Raised when a store already holds a record with the same id."""


class ServiceUnavailableError(BookingError):
    """Raised when a service is missing, inactive, or owned by another business."""


class SlotNotOfferedError(BookingError):
    """Raised when a requested time is not a bookable slot for that date.

    Covers closed days, times outside open hours, the booking window,
    a business that is not accepting appointments, and off-grid times.
    Picking another slot from a fresh listing is the only remedy.
    """

    retryable = False


class SlotConflictError(BookingError):
    """Raised when a slot was taken between listing and booking."""

    retryable = True

    def __init__(self, message: str, conflicting_ids: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.conflicting_ids: list[str] = conflicting_ids or []
