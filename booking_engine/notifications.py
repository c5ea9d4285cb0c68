"""
Appointment notification boundary.

The booking service only signals *that* something happened; delivery by
email or push belongs to whichever ``Notifier`` is plugged in.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Protocol

from booking_engine.schemas.appointment_schema import (
    Appointment,
    AppointmentStatus,
    CancelledBy,
)

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    NEW_BOOKING = "new_booking"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    CUSTOMER_CANCELLED = "customer_cancelled"
    NO_SHOW = "no_show"


@dataclass(frozen=True)
class AppointmentEvent:
    """A committed appointment change."""

    type: EventType
    appointment: Appointment
    occurred_at: datetime = field(default_factory=datetime.now)


class Notifier(Protocol):
    def notify(self, event: AppointmentEvent) -> None: ...


def event_for_status(appointment: Appointment) -> EventType:
    """Map an appointment's new status to the event downstream consumers expect.

    A customer cancellation notifies the business; a business cancellation
    notifies the customer.
    """
    status = appointment.status
    if status == AppointmentStatus.PENDING:
        return EventType.NEW_BOOKING
    if status == AppointmentStatus.CANCELLED:
        if appointment.cancelled_by == CancelledBy.CUSTOMER:
            return EventType.CUSTOMER_CANCELLED
        return EventType.CANCELLED
    return EventType(status.value)


class LoggingNotifier:
    """Default notifier that writes each event to the log."""

    def notify(self, event: AppointmentEvent) -> None:
        apt = event.appointment
        logger.info(
            "Notification %s: appointment %s (%s on %s at %s)",
            event.type.value, apt.id, apt.service_name, apt.scheduled_date, apt.scheduled_time,
        )


class RecordingNotifier:
    """Keeps events in memory. Useful for tests and dashboards."""

    def __init__(self) -> None:
        self.events: list[AppointmentEvent] = []

    def notify(self, event: AppointmentEvent) -> None:
        self.events.append(event)

    def types(self) -> list[EventType]:
        return [e.type for e in self.events]

    def reset(self) -> None:
        self.events.clear()
