"""Operating hours data models: weekly open ranges and booking window."""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from booking_engine.config import settings
from booking_engine.utils import is_valid_time, time_to_minutes


class Weekday(str, Enum):
    """Days of the week, ordered Monday first to match ``date.weekday()``."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, value: date) -> "Weekday":
        return _WEEKDAY_ORDER[value.weekday()]


_WEEKDAY_ORDER: list[Weekday] = list(Weekday)


class TimeRange(BaseModel):
    """A single open interval within a day, ``start`` inclusive, ``end`` exclusive."""

    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def _check_format(cls, value: str) -> str:
        if not is_valid_time(value):
            raise ValueError(f"Invalid time {value!r}, expected zero-padded 'HH:MM'")
        return value

    @model_validator(mode="after")
    def _check_order(self) -> "TimeRange":
        if time_to_minutes(self.start) >= time_to_minutes(self.end):
            raise ValueError(f"Range start {self.start} must be before end {self.end}")
        return self

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end)


class DayAvailability(BaseModel):
    """Whether a day is open and the ranges it is open for.

    Multiple ranges model split shifts (e.g. closed for lunch). Ranges may
    overlap; the slot generator de-duplicates the resulting candidates.
    """

    is_open: bool = False
    slots: list[TimeRange] = Field(default_factory=list)


class OperatingHours(BaseModel):
    """Weekly opening hours and booking-window limits for one business."""

    business_id: str
    monday: DayAvailability = Field(default_factory=DayAvailability)
    tuesday: DayAvailability = Field(default_factory=DayAvailability)
    wednesday: DayAvailability = Field(default_factory=DayAvailability)
    thursday: DayAvailability = Field(default_factory=DayAvailability)
    friday: DayAvailability = Field(default_factory=DayAvailability)
    saturday: DayAvailability = Field(default_factory=DayAvailability)
    sunday: DayAvailability = Field(default_factory=DayAvailability)
    advance_booking_days: int = Field(
        default=settings.scheduling.default_advance_booking_days, ge=0
    )
    min_advance_hours: int = Field(
        default=settings.scheduling.default_min_advance_hours, ge=0
    )
    accepting_appointments: bool = True

    def for_day(self, weekday: Weekday) -> DayAvailability:
        return getattr(self, weekday.value)

    def for_date(self, value: date) -> DayAvailability:
        return self.for_day(Weekday.from_date(value))
