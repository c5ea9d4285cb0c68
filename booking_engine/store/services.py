"""In-memory service catalog keyed by service id."""

import logging
from typing import Optional

from booking_engine.errors import RecordNotFoundError
from booking_engine.schemas.service_schema import Service

logger = logging.getLogger(__name__)


class ServiceCatalog:
    """Bookable services for all businesses."""

    def __init__(self) -> None:
        self._services: dict[str, Service] = {}

    def add(self, service: Service) -> Service:
        """Insert or replace a service definition."""
        self._services[service.id] = service
        logger.debug("Service saved: %s (%s)", service.id, service.business_id)
        return service

    def get(self, service_id: str) -> Service:
        """Fetch a service by id.

        Raises:
            RecordNotFoundError: If the id is unknown.
        """
        service = self._services.get(service_id)
        if service is None:
            raise RecordNotFoundError(f"Service {service_id} not found")
        return service

    def find(self, service_id: str) -> Optional[Service]:
        return self._services.get(service_id)

    def list_active(self, business_id: str) -> list[Service]:
        """Return a business's active services ordered by name."""
        return sorted(
            (s for s in self._services.values() if s.business_id == business_id and s.is_active),
            key=lambda s: s.name,
        )

    def reset(self) -> None:
        """Clear all services. Used by test fixtures for isolation."""
        self._services.clear()
