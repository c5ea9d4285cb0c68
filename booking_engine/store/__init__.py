from booking_engine.store.appointments import AppointmentStore
from booking_engine.store.hours import OperatingHoursStore
from booking_engine.store.services import ServiceCatalog

__all__ = ["AppointmentStore", "OperatingHoursStore", "ServiceCatalog"]
