"""Shared test fixtures and helpers."""

from datetime import date, datetime
from typing import Optional

import pytest

from booking_engine.booking import BookingService
from booking_engine.notifications import RecordingNotifier
from booking_engine.schemas.appointment_schema import (
    Appointment,
    AppointmentStatus,
    BookingRequest,
)
from booking_engine.schemas.hours_schema import DayAvailability, OperatingHours, TimeRange
from booking_engine.schemas.service_schema import Service
from booking_engine.store.appointments import AppointmentStore
from booking_engine.store.hours import OperatingHoursStore
from booking_engine.store.services import ServiceCatalog

BUSINESS_ID = "biz-1"

# Sunday morning; the following Monday is the usual booking date
NOW = datetime(2026, 10, 18, 8, 0)
MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)
SUNDAY = date(2026, 10, 25)


def open_day(*ranges: tuple[str, str]) -> DayAvailability:
    """Helper to build an open day from (start, end) pairs."""
    return DayAvailability(
        is_open=True,
        slots=[TimeRange(start=start, end=end) for start, end in ranges],
    )


def make_hours(
    advance_booking_days: int = 30,
    min_advance_hours: int = 2,
    accepting_appointments: bool = True,
    **days: DayAvailability,
) -> OperatingHours:
    """Weekdays open 09:00-17:00 and weekends closed unless overridden."""
    weekdays = {
        name: open_day(("09:00", "17:00"))
        for name in ("monday", "tuesday", "wednesday", "thursday", "friday")
    }
    weekdays.update(days)
    return OperatingHours(
        business_id=BUSINESS_ID,
        advance_booking_days=advance_booking_days,
        min_advance_hours=min_advance_hours,
        accepting_appointments=accepting_appointments,
        **weekdays,
    )


def make_service(
    service_id: str = "svc-cut",
    duration: int = 30,
    buffer_time: int = 0,
    business_id: str = BUSINESS_ID,
    is_active: bool = True,
    price: float = 40.0,
) -> Service:
    return Service(
        id=service_id,
        business_id=business_id,
        name="Haircut",
        duration=duration,
        buffer_time=buffer_time,
        price=price,
        is_active=is_active,
    )


def make_appointment(
    scheduled_time: str = "10:00",
    duration: int = 30,
    status: AppointmentStatus = AppointmentStatus.CONFIRMED,
    scheduled_date: date = MONDAY,
    buffer_time: int = 0,
    appointment_id: Optional[str] = None,
) -> Appointment:
    """Helper to create an existing appointment with sensible defaults."""
    return Appointment(
        id=appointment_id or f"APT-{scheduled_date.isoformat()}-{scheduled_time}",
        business_id=BUSINESS_ID,
        service_id="svc-cut",
        service_name="Haircut",
        customer_id="cust-1",
        scheduled_date=scheduled_date,
        scheduled_time=scheduled_time,
        duration=duration,
        buffer_time=buffer_time,
        status=status,
        created_at=NOW,
        updated_at=NOW,
    )


def make_request(
    scheduled_time: str = "10:00",
    scheduled_date: date = MONDAY,
    customer_id: str = "cust-1",
    service_id: str = "svc-cut",
) -> BookingRequest:
    return BookingRequest(
        business_id=BUSINESS_ID,
        service_id=service_id,
        customer_id=customer_id,
        customer_name="Ada Lovelace",
        customer_email="ada@example.com",
        scheduled_date=scheduled_date,
        scheduled_time=scheduled_time,
    )


@pytest.fixture
def hours():
    return make_hours()


@pytest.fixture
def service():
    return make_service()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def booking_service(hours, service, notifier):
    hours_store = OperatingHoursStore()
    hours_store.save(hours)
    catalog = ServiceCatalog()
    catalog.add(service)
    return BookingService(
        hours_store, catalog, AppointmentStore(), notifier=notifier, clock=lambda: NOW
    )
