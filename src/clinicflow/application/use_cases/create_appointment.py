"""Create Appointment use case."""

import uuid
from typing import Optional

from ...core.config import get_settings
from ...core.structured_logger import get_logger
from ...domain.entities.appointment import Appointment
from ...domain.enums.appointment import AppointmentStatus
from ..form.appointment_form import AppointmentForm
from ..ports.repositories.appointment_repo import AppointmentRepository
from ..validators.form_validator import FormValidator

logger = get_logger("clinicflow.appointments")


class CreateAppointmentUseCase:
    """Use case for persisting a new appointment with its packages and sessions."""

    def __init__(
        self,
        appointment_repository: AppointmentRepository,
        validator: Optional[FormValidator] = None,
    ):
        self._appointment_repository = appointment_repository
        self._validator = validator or FormValidator(
            min_duration_minutes=get_settings().scheduling.min_duration_minutes
        )

    async def execute(self, form: AppointmentForm) -> Appointment:
        """Validate the form and persist it in one call."""
        self._validator.ensure_valid(form)
        payload = form.to_create_payload()
        details = payload.details

        appointment = Appointment(
            id=uuid.uuid4().hex,
            patient_id=details.patient_id,
            scheduled_date=details.scheduled_date,
            duration_minutes=details.duration_minutes,
            status=AppointmentStatus.RESERVED,
            reservation_amount=details.reservation_amount,
            notes=details.notes,
        )
        created = await self._appointment_repository.create(appointment, payload.operations)

        logger.info(
            "Appointment created",
            appointment_id=created.id,
            patient_id=created.patient_id,
            sessions=len(payload.operations.to_create),
            new_orders=len(payload.operations.new_orders),
            price_updates=len(payload.operations.order_price_updates),
        )
        return created
