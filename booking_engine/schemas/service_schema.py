"""Bookable service data model."""

from typing import Optional

from pydantic import BaseModel, Field


class Service(BaseModel):
    """A bookable offering with its calendar footprint.

    ``duration`` must be positive so the slot generator never walks the
    calendar with a zero step.
    """

    id: str
    business_id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    duration: int = Field(gt=0, description="Service length in minutes")
    buffer_time: int = Field(default=0, ge=0, description="Minutes reserved after the service")
    price: float = Field(default=0.0, ge=0)
    is_active: bool = True

    @property
    def effective_duration(self) -> int:
        """Minutes a new booking of this service occupies on the calendar."""
        return self.duration + self.buffer_time
