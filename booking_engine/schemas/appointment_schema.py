"""Appointment data models and booking request payloads."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from booking_engine.utils import is_valid_time, time_to_minutes


class AppointmentStatus(str, Enum):
    """All possible states in an appointment lifecycle."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class CancelledBy(str, Enum):
    CUSTOMER = "customer"
    BUSINESS = "business"


def _check_time(value: str) -> str:
    if not is_valid_time(value):
        raise ValueError(f"Invalid time {value!r}, expected zero-padded 'HH:MM'")
    return value


class Appointment(BaseModel):
    """
    A booked appointment shared between a business and a customer.

    Records are immutable. Status changes and business notes produce a new
    record through ``booking_engine.scheduling.state_machine``; the date,
    time, and duration fields are never part of those updates.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    business_id: str
    business_name: str = ""
    service_id: str
    service_name: str
    customer_id: str
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: Optional[str] = None
    scheduled_date: date
    scheduled_time: str
    duration: int = Field(gt=0)
    buffer_time: int = Field(default=0, ge=0)
    price: float = Field(default=0.0, ge=0)
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: Optional[str] = None
    business_notes: Optional[str] = None
    cancelled_by: Optional[CancelledBy] = None
    cancel_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @field_validator("scheduled_time")
    @classmethod
    def _check_scheduled_time(cls, value: str) -> str:
        return _check_time(value)

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.scheduled_time)

    @property
    def end_minutes(self) -> int:
        """End of the service itself, excluding buffer."""
        return self.start_minutes + self.duration


class BookingRequest(BaseModel):
    """Validated customer booking request."""

    business_id: str
    service_id: str
    customer_id: str
    scheduled_date: date
    scheduled_time: str
    business_name: str = ""
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("scheduled_time")
    @classmethod
    def _check_scheduled_time(cls, value: str) -> str:
        return _check_time(value)
