"""
Service catalog repository interface.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ....domain.entities.catalog import Service


class ServiceCatalogRepository(ABC):
    """Abstract repository for the clinic's service catalog."""

    @abstractmethod
    async def find_by_id(self, service_id: str) -> Optional[Service]:
        """Find a service by ID."""
        pass

    @abstractmethod
    async def find_active(self) -> List[Service]:
        """List services that can currently be booked."""
        pass
