"""Update Appointment use case: replays a form's session diff on an appointment."""

from typing import Optional

from ...core.config import get_settings
from ...core.structured_logger import get_logger
from ...domain.entities.appointment import Appointment
from ...domain.errors import AppointmentNotFoundError, AppointmentValidationError
from ..form.appointment_form import AppointmentForm
from ..ports.repositories.appointment_repo import AppointmentRepository
from ..validators.form_validator import FormValidator

logger = get_logger("clinicflow.appointments")


class UpdateAppointmentUseCase:
    """Use case for saving an edited appointment."""

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
        """Validate, apply the session operations, then the scheduling fields.

        The form itself is never modified, so a failed submit can be retried.
        """
        self._validator.ensure_valid(form)
        payload = form.to_update_payload()
        operations = payload.operations

        appointment = await self._appointment_repository.find_by_id(payload.appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(payload.appointment_id)
        if appointment.patient_id != form.patient_id:
            raise AppointmentValidationError(
                {"patient_id": "Patient does not match the appointment"}
            )

        if not operations.is_empty:
            appointment = await self._appointment_repository.apply_session_operations(
                appointment.id, appointment.patient_id, operations
            )

        details = payload.details
        appointment.update_details(
            scheduled_date=details.scheduled_date,
            duration_minutes=details.duration_minutes,
            reservation_amount=details.reservation_amount,
            notes=details.notes,
        )
        appointment = await self._appointment_repository.update_details(appointment)

        logger.info(
            "Appointment updated",
            appointment_id=appointment.id,
            deleted=len(operations.to_delete),
            created=len(operations.to_create),
            new_orders=len(operations.new_orders),
            price_updates=len(operations.order_price_updates),
        )
        return appointment
