"""
Order (treatment package) repository interface.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ....domain.entities.catalog import Order


class OrderRepository(ABC):
    """Abstract repository for patient orders and their booked sessions."""

    @abstractmethod
    async def find_by_id(self, order_id: str) -> Optional[Order]:
        """Find an order by ID, with its appointment services."""
        pass

    @abstractmethod
    async def find_by_patient_id(self, patient_id: str) -> List[Order]:
        """Find every order of a patient."""
        pass

    @abstractmethod
    async def find_active_by_patient_id(self, patient_id: str) -> List[Order]:
        """Find the patient's orders that still have sessions to attend."""
        pass
