"""
Appointment repository interface.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ....domain.entities.appointment import Appointment
from ....domain.value_objects.session_operations import SessionOperations


class AppointmentRepository(ABC):
    """Abstract repository for appointments and their session rows."""

    @abstractmethod
    async def find_by_id(self, appointment_id: str) -> Optional[Appointment]:
        """Find an appointment by ID, with its appointment services."""
        pass

    @abstractmethod
    async def create(
        self, appointment: Appointment, operations: SessionOperations
    ) -> Appointment:
        """Persist a new appointment and the sessions planned for it.

        New orders are created first; sessions carrying a ``temp_package_id``
        are attached to the order created for it. ``to_delete`` is ignored.
        """
        pass

    @abstractmethod
    async def update_details(self, appointment: Appointment) -> Appointment:
        """Persist the scheduling fields of an appointment."""
        pass

    @abstractmethod
    async def apply_session_operations(
        self, appointment_id: str, patient_id: str, operations: SessionOperations
    ) -> Appointment:
        """Apply a session diff: deletions, new orders, new sessions, price updates.

        Implementations apply the whole diff or nothing.
        """
        pass
