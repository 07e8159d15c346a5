"""Appointment DTOs passed from the form to the persistence use cases."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ...domain.value_objects.session_operations import SessionOperations


@dataclass
class AppointmentDetails:
    """Scheduling fields edited alongside the sessions."""

    patient_id: str
    scheduled_date: Optional[datetime]
    duration_minutes: int
    reservation_amount: Optional[float] = None
    notes: str = ""


@dataclass
class CreateAppointmentPayload:
    """Everything needed to persist a new appointment in one call."""

    details: AppointmentDetails
    operations: SessionOperations = field(default_factory=SessionOperations)

    def to_dict(self) -> Dict[str, Any]:
        data = self.operations.to_dict()
        data.pop("toDelete")
        return {
            "patientId": self.details.patient_id,
            "scheduledDate": self.details.scheduled_date,
            "durationMinutes": self.details.duration_minutes,
            "reservationAmount": self.details.reservation_amount,
            "notes": self.details.notes,
            **data,
        }


@dataclass
class UpdateAppointmentPayload:
    """Scheduling changes plus the session diff for an existing appointment."""

    appointment_id: str
    details: AppointmentDetails
    operations: SessionOperations = field(default_factory=SessionOperations)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "appointmentId": self.appointment_id,
            "scheduledDate": self.details.scheduled_date,
            "durationMinutes": self.details.duration_minutes,
            "reservationAmount": self.details.reservation_amount,
            "notes": self.details.notes,
            "sessionOperations": self.operations.to_dict(),
        }
