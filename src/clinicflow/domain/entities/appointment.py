"""Appointment domain entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ..enums.appointment import AppointmentStatus


@dataclass
class AppointmentService:
    """A session booked in an appointment, attached to an order."""

    id: str
    order_id: str
    service_id: str
    session_number: Optional[int] = None


@dataclass
class Appointment:
    """Appointment domain entity."""

    id: str
    patient_id: str
    scheduled_date: datetime
    duration_minutes: int = 30
    status: AppointmentStatus = AppointmentStatus.RESERVED
    reservation_amount: Optional[float] = None
    notes: str = ""
    appointment_services: List[AppointmentService] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def update_details(
        self,
        scheduled_date: datetime,
        duration_minutes: int,
        reservation_amount: Optional[float],
        notes: str,
    ) -> None:
        """Update scheduling fields."""
        self.scheduled_date = scheduled_date
        self.duration_minutes = duration_minutes
        self.reservation_amount = reservation_amount
        self.notes = notes
        self.updated_at = datetime.utcnow()
