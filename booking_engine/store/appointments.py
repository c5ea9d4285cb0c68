"""
In-memory appointment store.

Appointments are bucketed by ``(business_id, scheduled_date)`` so a
conflict check reads one day of one business instead of the full history.
In production this would sit on a document store; the booking service
serializes writes per bucket, so the store itself does no locking beyond
guarding its own dictionaries.
"""

import logging
import threading
from collections import defaultdict
from datetime import date
from typing import Optional

from booking_engine.errors import DuplicateRecordError, RecordNotFoundError
from booking_engine.schemas.appointment_schema import Appointment, AppointmentStatus

logger = logging.getLogger(__name__)

BucketKey = tuple[str, date]


class AppointmentStore:
    """Appointment records keyed by id and indexed by business and date."""

    def __init__(self) -> None:
        self._records: dict[str, Appointment] = {}
        self._buckets: dict[BucketKey, set[str]] = defaultdict(set)
        self._guard = threading.Lock()

    @staticmethod
    def bucket_key(appointment: Appointment) -> BucketKey:
        return appointment.business_id, appointment.scheduled_date

    def add(self, appointment: Appointment) -> Appointment:
        """Insert a new appointment.

        Raises:
            DuplicateRecordError: If the id is already stored.
        """
        with self._guard:
            if appointment.id in self._records:
                raise DuplicateRecordError(f"Appointment {appointment.id} already exists")
            self._records[appointment.id] = appointment
            self._buckets[self.bucket_key(appointment)].add(appointment.id)
        logger.debug("Stored appointment %s", appointment.id)
        return appointment

    def replace(self, appointment: Appointment) -> Appointment:
        """Overwrite an existing record with its updated version.

        Raises:
            RecordNotFoundError: If the id is unknown.
            ValueError: If the update moves the appointment to another bucket.
        """
        with self._guard:
            current = self._records.get(appointment.id)
            if current is None:
                raise RecordNotFoundError(f"Appointment {appointment.id} not found")
            if self.bucket_key(current) != self.bucket_key(appointment):
                raise ValueError(
                    f"Appointment {appointment.id} business and date cannot change"
                )
            self._records[appointment.id] = appointment
        return appointment

    def get(self, appointment_id: str) -> Appointment:
        """Fetch one appointment.

        Raises:
            RecordNotFoundError: If the id is unknown.
        """
        with self._guard:
            appointment = self._records.get(appointment_id)
        if appointment is None:
            raise RecordNotFoundError(f"Appointment {appointment_id} not found")
        return appointment

    def find(self, appointment_id: str) -> Optional[Appointment]:
        with self._guard:
            return self._records.get(appointment_id)

    def on_date(
        self, business_id: str, scheduled_date: date, include_cancelled: bool = False
    ) -> list[Appointment]:
        """Return one business's appointments for one date, ordered by start time."""
        with self._guard:
            ids = self._buckets.get((business_id, scheduled_date), set())
            records = [self._records[i] for i in ids]
        if not include_cancelled:
            records = [a for a in records if a.status != AppointmentStatus.CANCELLED]
        return sorted(records, key=lambda a: (a.scheduled_time, a.created_at))

    def for_business(self, business_id: str, include_cancelled: bool = False) -> list[Appointment]:
        """Return all of a business's appointments, ordered by date and time."""
        with self._guard:
            records = [a for a in self._records.values() if a.business_id == business_id]
        if not include_cancelled:
            records = [a for a in records if a.status != AppointmentStatus.CANCELLED]
        return sorted(records, key=lambda a: (a.scheduled_date, a.scheduled_time))

    def for_customer(self, customer_id: str) -> list[Appointment]:
        """Return all of a customer's appointments, including cancelled ones."""
        with self._guard:
            records = [a for a in self._records.values() if a.customer_id == customer_id]
        return sorted(records, key=lambda a: (a.scheduled_date, a.scheduled_time))

    def reset(self) -> None:
        """Clear all appointments. Used by test fixtures for isolation."""
        with self._guard:
            self._records.clear()
            self._buckets.clear()
