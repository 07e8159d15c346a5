"""
Appointment form validation.

Each validator inspects one concern and reports ``{field: message}``; the
``FormValidator`` runs the whole chain and merges the results.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ...domain.errors import AppointmentValidationError
from ..form.appointment_form import AppointmentForm

FormErrors = Dict[str, str]


class Validator(ABC):
    """Single link in the validation chain."""

    @abstractmethod
    def validate(self, form: AppointmentForm) -> FormErrors:
        pass


class PatientValidator(Validator):
    def validate(self, form: AppointmentForm) -> FormErrors:
        if not form.patient_id:
            return {"patient_id": "A patient must be selected"}
        return {}


class SessionsValidator(Validator):
    def validate(self, form: AppointmentForm) -> FormErrors:
        if not form.active_sessions:
            return {"sessions": "At least one session must be scheduled"}
        return {}


class ScheduledDateValidator(Validator):
    def __init__(self, clock: Callable[..., datetime] = datetime.now):
        self._clock = clock

    def validate(self, form: AppointmentForm) -> FormErrors:
        if form.scheduled_date is None:
            return {"scheduled_date": "Date and time are required"}
        # Compare in the same awareness as the submitted value
        now = self._clock(form.scheduled_date.tzinfo)
        if form.scheduled_date < now:
            return {"scheduled_date": "Date cannot be in the past"}
        return {}


class DurationValidator(Validator):
    def __init__(self, min_duration_minutes: int = 30):
        self.min_duration_minutes = min_duration_minutes

    def validate(self, form: AppointmentForm) -> FormErrors:
        if not form.duration_minutes or form.duration_minutes < self.min_duration_minutes:
            return {
                "duration_minutes": f"Minimum duration is {self.min_duration_minutes} minutes"
            }
        return {}


class ReservationAmountValidator(Validator):
    def validate(self, form: AppointmentForm) -> FormErrors:
        if form.reservation_amount is not None and form.reservation_amount < 0:
            return {"reservation_amount": "Amount must be greater than or equal to 0"}
        return {}


class FormValidator:
    """Runs every validator and merges their errors."""

    def __init__(
        self,
        min_duration_minutes: int = 30,
        validators: Optional[List[Validator]] = None,
    ):
        self.validators = validators or [
            PatientValidator(),
            SessionsValidator(),
            ScheduledDateValidator(),
            DurationValidator(min_duration_minutes),
            ReservationAmountValidator(),
        ]

    def validate(self, form: AppointmentForm) -> FormErrors:
        errors: FormErrors = {}
        for validator in self.validators:
            errors.update(validator.validate(form))
        return errors

    def is_valid(self, form: AppointmentForm) -> bool:
        return not self.validate(form)

    def ensure_valid(self, form: AppointmentForm) -> None:
        """Raise ``AppointmentValidationError`` when any validator fails."""
        errors = self.validate(form)
        if errors:
            raise AppointmentValidationError(errors)
