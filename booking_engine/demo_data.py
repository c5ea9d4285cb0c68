"""Seed data for a demo salon used by the CLI and tests."""

from datetime import datetime
from typing import Callable, Optional

from booking_engine.booking import BookingService
from booking_engine.notifications import Notifier
from booking_engine.schemas.hours_schema import DayAvailability, OperatingHours, TimeRange
from booking_engine.schemas.service_schema import Service
from booking_engine.store.appointments import AppointmentStore
from booking_engine.store.hours import OperatingHoursStore
from booking_engine.store.services import ServiceCatalog

DEMO_BUSINESS_ID = "demo-salon"
DEMO_BUSINESS_NAME = "Main Street Salon"

_WEEKDAY = DayAvailability(
    is_open=True,
    slots=[TimeRange(start="09:00", end="12:00"), TimeRange(start="13:00", end="17:00")],
)

DEMO_HOURS = OperatingHours(
    business_id=DEMO_BUSINESS_ID,
    monday=_WEEKDAY,
    tuesday=_WEEKDAY,
    wednesday=_WEEKDAY,
    thursday=_WEEKDAY,
    friday=_WEEKDAY,
    saturday=DayAvailability(is_open=True, slots=[TimeRange(start="10:00", end="14:00")]),
    advance_booking_days=30,
    min_advance_hours=2,
)

DEMO_SERVICES: dict[str, Service] = {
    "haircut": Service(
        id="haircut", business_id=DEMO_BUSINESS_ID, name="Haircut",
        duration=30, buffer_time=10, price=35.0, category="hair",
    ),
    "colour": Service(
        id="colour", business_id=DEMO_BUSINESS_ID, name="Full Colour",
        duration=90, buffer_time=15, price=120.0, category="hair",
    ),
    "beard-trim": Service(
        id="beard-trim", business_id=DEMO_BUSINESS_ID, name="Beard Trim",
        duration=15, price=15.0, category="grooming",
    ),
}


def build_demo_service(
    notifier: Optional[Notifier] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> BookingService:
    """Return a BookingService backed by fresh stores holding the demo salon."""
    hours_store = OperatingHoursStore()
    hours_store.save(DEMO_HOURS)
    catalog = ServiceCatalog()
    for service in DEMO_SERVICES.values():
        catalog.add(service)
    return BookingService(
        hours_store, catalog, AppointmentStore(), notifier=notifier, clock=clock
    )
