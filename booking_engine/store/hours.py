"""In-memory operating hours, one record per business."""

import logging

from booking_engine.errors import RecordNotFoundError
from booking_engine.schemas.hours_schema import OperatingHours

logger = logging.getLogger(__name__)


class OperatingHoursStore:
    def __init__(self) -> None:
        self._hours: dict[str, OperatingHours] = {}

    def save(self, hours: OperatingHours) -> OperatingHours:
        self._hours[hours.business_id] = hours
        logger.debug("Operating hours saved for %s", hours.business_id)
        return hours

    def get(self, business_id: str) -> OperatingHours:
        """Fetch a business's hours.

        Raises:
            RecordNotFoundError: If the business has no hours configured.
        """
        hours = self._hours.get(business_id)
        if hours is None:
            raise RecordNotFoundError(f"No operating hours configured for {business_id}")
        return hours

    def reset(self) -> None:
        """Clear all hours. Used by test fixtures for isolation."""
        self._hours.clear()
