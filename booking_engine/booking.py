"""
Booking service: slot listing, atomic appointment creation, and status changes.

Listing slots is a pure read. Creating an appointment and changing its
status are read-then-write sequences, so both run while holding a lock
dedicated to the appointment's ``(business_id, scheduled_date)``. Inside
the lock the day's appointments are re-read and the requested time is
re-checked, so two customers racing for the same slot cannot both win:
the loser gets ``SlotConflictError`` and is expected to pick again.

Usage:
    service = BookingService(hours_store, catalog, appointment_store)
    slots = service.get_available_slots("biz-1", "svc-cut", date(2026, 10, 20))
    appointment = service.create_appointment(BookingRequest(...))
    service.confirm(appointment.id)
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Iterator, Optional

from booking_engine.config import settings
from booking_engine.errors import (
    ServiceUnavailableError,
    SlotConflictError,
    SlotNotOfferedError,
)
from booking_engine.logging_context import get_request_logger, new_request_id
from booking_engine.notifications import (
    AppointmentEvent,
    LoggingNotifier,
    Notifier,
    event_for_status,
)
from booking_engine.schemas.appointment_schema import (
    Appointment,
    AppointmentStatus,
    BookingRequest,
    CancelledBy,
)
from booking_engine.schemas.service_schema import Service
from booking_engine.scheduling.conflicts import find_conflicts
from booking_engine.scheduling.slot_generator import (
    DateAvailability,
    available_dates,
    available_slots,
    is_on_grid,
)
from booking_engine.scheduling.state_machine import (
    LifecycleAction,
    action_for,
    is_terminal,
    new_appointment,
    transition,
    with_business_notes,
)
from booking_engine.store.appointments import AppointmentStore, BucketKey
from booking_engine.store.hours import OperatingHoursStore
from booking_engine.store.services import ServiceCatalog

logger = get_request_logger(__name__)


@dataclass
class _DayLock:
    """Lock for one (business_id, date) plus the number of threads using it."""

    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class BookingService:
    """Coordinates the stores, the slot generator, and the lifecycle rules."""

    def __init__(
        self,
        hours_store: OperatingHoursStore,
        catalog: ServiceCatalog,
        appointments: AppointmentStore,
        notifier: Optional[Notifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.hours_store = hours_store
        self.catalog = catalog
        self.appointments = appointments
        self.notifier: Notifier = notifier or LoggingNotifier()
        self._clock = clock or datetime.now
        self._locks: dict[BucketKey, _DayLock] = {}
        self._locks_guard = threading.Lock()

    # --- Internals ---

    @contextmanager
    def _lock_for(self, business_id: str, scheduled_date: date) -> Iterator[None]:
        """Hold the lock for one business day.

        Entries are reference counted and dropped once no thread holds or
        waits on them, so the registry only contains days in use.
        """
        key = (business_id, scheduled_date)
        with self._locks_guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _DayLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[key]

    def _active_service(self, business_id: str, service_id: str) -> Service:
        service = self.catalog.find(service_id)
        if service is None or service.business_id != business_id:
            raise ServiceUnavailableError(
                f"Service {service_id} is not offered by business {business_id}"
            )
        if not service.is_active:
            raise ServiceUnavailableError(f"Service {service_id} is not currently bookable")
        return service

    def _dispatch(self, appointment: Appointment) -> None:
        event = AppointmentEvent(type=event_for_status(appointment), appointment=appointment)
        try:
            self.notifier.notify(event)
        except Exception:
            # The write is already committed; delivery problems must not undo it.
            logger.exception(
                "Notification %s failed for appointment %s", event.type.value, appointment.id
            )

    # --- Reads ---

    def get_available_slots(
        self, business_id: str, service_id: str, on_date: date
    ) -> list[str]:
        """List bookable start times for a service on a date."""
        service = self._active_service(business_id, service_id)
        hours = self.hours_store.get(business_id)
        existing = self.appointments.on_date(business_id, on_date)
        return available_slots(on_date, service, hours, existing, now=self._clock())

    def get_available_dates(
        self, business_id: str, service_id: str, limit: Optional[int] = None
    ) -> list[DateAvailability]:
        """List upcoming dates with at least one free slot for a service."""
        service = self._active_service(business_id, service_id)
        hours = self.hours_store.get(business_id)
        existing = self.appointments.for_business(business_id)
        return available_dates(service, hours, existing, now=self._clock(), limit=limit)

    def list_business_appointments(
        self, business_id: str, include_cancelled: bool = True
    ) -> list[Appointment]:
        return self.appointments.for_business(business_id, include_cancelled=include_cancelled)

    def list_customer_appointments(self, customer_id: str) -> list[Appointment]:
        return self.appointments.for_customer(customer_id)

    def upcoming_and_past(
        self, business_id: str, today: Optional[date] = None
    ) -> tuple[list[Appointment], list[Appointment]]:
        """Split a business's appointments into upcoming and past.

        Upcoming means scheduled today or later and not yet terminal.
        """
        today = today or self._clock().date()
        upcoming, past = [], []
        for appointment in self.list_business_appointments(business_id):
            if appointment.scheduled_date >= today and not is_terminal(appointment.status):
                upcoming.append(appointment)
            else:
                past.append(appointment)
        return upcoming, past

    # --- Writes ---

    def create_appointment(self, request: BookingRequest) -> Appointment:
        """
        Book a slot and store a ``pending`` appointment.

        Raises:
            ServiceUnavailableError: Unknown, foreign, or inactive service.
            RecordNotFoundError: The business has no operating hours.
            SlotNotOfferedError: The time is not a bookable slot that day.
            SlotConflictError: The time overlaps an appointment booked since
                the slots were listed. Retryable with another time.
        """
        request_id = new_request_id()
        service = self._active_service(request.business_id, request.service_id)
        hours = self.hours_store.get(request.business_id)
        now = self._clock()

        if not is_on_grid(request.scheduled_date, request.scheduled_time, service, hours, now=now):
            logger.info(
                "Rejected %s on %s at %s: not an offered slot",
                service.id, request.scheduled_date, request.scheduled_time,
            )
            raise SlotNotOfferedError(
                f"{request.scheduled_time} on {request.scheduled_date} is not a bookable "
                f"time for {service.name}"
            )

        with self._lock_for(request.business_id, request.scheduled_date):
            existing = self.appointments.on_date(request.business_id, request.scheduled_date)
            clashes = find_conflicts(
                request.scheduled_date,
                request.scheduled_time,
                service.effective_duration,
                existing,
            )
            if clashes:
                logger.info(
                    "Slot %s %s taken by %s",
                    request.scheduled_date, request.scheduled_time, [a.id for a in clashes],
                )
                raise SlotConflictError(
                    "Slot no longer available, choose another time",
                    conflicting_ids=[a.id for a in clashes],
                )

            appointment = new_appointment(
                service=service,
                customer_id=request.customer_id,
                scheduled_date=request.scheduled_date,
                scheduled_time=request.scheduled_time,
                now=now,
                business_name=request.business_name,
                customer_name=request.customer_name,
                customer_email=request.customer_email,
                customer_phone=request.customer_phone,
                notes=request.notes,
            )
            self.appointments.add(appointment)

        logger.info(
            "Appointment %s created (%s): %s on %s at %s",
            appointment.id, request_id, service.name,
            appointment.scheduled_date, appointment.scheduled_time,
        )
        self._dispatch(appointment)
        return appointment

    def book_with_retry(
        self,
        request: BookingRequest,
        choose_time: Callable[[list[str]], Optional[str]],
        max_attempts: Optional[int] = None,
    ) -> Appointment:
        """
        Create an appointment, re-picking the time after each conflict.

        After a ``SlotConflictError`` the current slots are fetched and passed
        to ``choose_time``, which returns the next time to try or ``None`` to
        give up. The last conflict is re-raised once ``max_attempts``
        (default ``MAX_BOOKING_ATTEMPTS``) is exhausted.
        """
        attempts = max_attempts
        if attempts is None:
            attempts = settings.booking.max_booking_attempts
        if attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {attempts}")
        current = request
        for attempt in range(1, attempts + 1):
            try:
                return self.create_appointment(current)
            except SlotConflictError:
                if attempt == attempts:
                    logger.warning(
                        "Giving up on %s %s after %d attempt(s)",
                        current.business_id, current.scheduled_date, attempts,
                    )
                    raise
                slots = self.get_available_slots(
                    current.business_id, current.service_id, current.scheduled_date
                )
                choice = choose_time(slots)
                if choice is None:
                    raise
                logger.info("Retrying booking at %s (attempt %d)", choice, attempt + 1)
                current = current.model_copy(update={"scheduled_time": choice})
        raise AssertionError("unreachable")

    def _apply(self, appointment_id: str, action: LifecycleAction, **kwargs) -> Appointment:
        snapshot = self.appointments.get(appointment_id)
        with self._lock_for(snapshot.business_id, snapshot.scheduled_date):
            current = self.appointments.get(appointment_id)
            updated = transition(current, action, now=self._clock(), **kwargs)
            self.appointments.replace(updated)

        logger.info(
            "Appointment %s: %s -> %s", appointment_id, current.status.value, updated.status.value
        )
        self._dispatch(updated)
        return updated

    def confirm(self, appointment_id: str) -> Appointment:
        return self._apply(appointment_id, LifecycleAction.CONFIRM)

    def complete(self, appointment_id: str) -> Appointment:
        return self._apply(appointment_id, LifecycleAction.COMPLETE)

    def mark_no_show(self, appointment_id: str) -> Appointment:
        return self._apply(appointment_id, LifecycleAction.MARK_NO_SHOW)

    def cancel(
        self,
        appointment_id: str,
        cancelled_by: CancelledBy = CancelledBy.BUSINESS,
        reason: Optional[str] = None,
    ) -> Appointment:
        """Cancel a pending or confirmed appointment, freeing its slot."""
        return self._apply(
            appointment_id, LifecycleAction.CANCEL, cancelled_by=cancelled_by, reason=reason
        )

    def set_status(self, appointment_id: str, status: AppointmentStatus) -> Appointment:
        """Dashboard-style status update, validated against the transition table."""
        current = self.appointments.get(appointment_id)
        return self._apply(appointment_id, action_for(current.status, status))

    def update_business_notes(self, appointment_id: str, notes: Optional[str]) -> Appointment:
        """Replace the business-private notes on an appointment."""
        snapshot = self.appointments.get(appointment_id)
        with self._lock_for(snapshot.business_id, snapshot.scheduled_date):
            current = self.appointments.get(appointment_id)
            updated = with_business_notes(current, notes, now=self._clock())
            self.appointments.replace(updated)
        logger.debug("Business notes updated on %s", appointment_id)
        return updated
