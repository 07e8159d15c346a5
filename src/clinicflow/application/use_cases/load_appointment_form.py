"""Load Appointment Form use case: seeds an authoring session from persistence."""

from typing import Any, Iterable, List, Optional, Sequence

from ...core.config import get_settings
from ...core.structured_logger import get_logger
from ...domain.entities.catalog import Order, Service
from ...domain.entities.session_entry import SessionEntry
from ...domain.enums.appointment import FormMode
from ...domain.errors import AppointmentNotFoundError, AppointmentValidationError
from ..form.appointment_form import AppointmentForm
from ..ports.repositories.appointment_repo import AppointmentRepository
from ..ports.repositories.catalog_repo import ServiceCatalogRepository
from ..ports.repositories.order_repo import OrderRepository

logger = get_logger("clinicflow.appointments")


class LoadAppointmentFormUseCase:
    """Use case for opening an appointment form in create or edit mode."""

    def __init__(
        self,
        service_repository: ServiceCatalogRepository,
        order_repository: OrderRepository,
        appointment_repository: AppointmentRepository,
    ):
        self._service_repository = service_repository
        self._order_repository = order_repository
        self._appointment_repository = appointment_repository

    @staticmethod
    def _form_options() -> dict:
        scheduling = get_settings().scheduling
        return dict(
            temp_package_prefix=scheduling.temp_package_prefix,
            default_package_sessions=scheduling.default_package_sessions,
        )

    async def execute(
        self, patient_id: Optional[str] = None, appointment_id: Optional[str] = None
    ) -> AppointmentForm:
        """Build an empty form for ``patient_id`` or a seeded one for ``appointment_id``."""
        services = await self._service_repository.find_active()

        if appointment_id is None:
            if not patient_id:
                raise AppointmentValidationError({"patient_id": "A patient must be selected"})
            orders = await self._order_repository.find_active_by_patient_id(patient_id)
            logger.debug("Opened new appointment form", patient_id=patient_id, orders=len(orders))
            return AppointmentForm(
                patient_id=patient_id,
                services=services,
                patient_orders=orders,
                duration_minutes=get_settings().scheduling.default_duration_minutes,
                **self._form_options(),
            )

        appointment = await self._appointment_repository.find_by_id(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(appointment_id)

        orders = await self._order_repository.find_active_by_patient_id(appointment.patient_id)
        await self._include_referenced(
            appointment.patient_id,
            services,
            orders,
            (s.service_id for s in appointment.appointment_services),
            (s.order_id for s in appointment.appointment_services),
        )

        logger.debug(
            "Opened appointment form for edit",
            appointment_id=appointment.id,
            sessions=len(appointment.appointment_services),
            orders=len(orders),
        )
        return AppointmentForm.for_edit(appointment, services, orders, **self._form_options())

    async def restore(
        self,
        patient_id: str,
        sessions: Sequence[SessionEntry],
        appointment_id: Optional[str] = None,
        **fields: Any,
    ) -> AppointmentForm:
        """Rebuild a client-held form against the current catalog and orders.

        The posted sessions and prices are reconciled before use, so a state
        the form could not have produced is normalized or rejected here.
        """
        services = await self._service_repository.find_active()
        orders = (
            await self._order_repository.find_active_by_patient_id(patient_id)
            if patient_id
            else []
        )
        await self._include_referenced(
            patient_id,
            services,
            orders,
            (s.service_id for s in sessions),
            (s.order_id for s in sessions),
        )
        form = AppointmentForm(
            patient_id=patient_id,
            services=services,
            patient_orders=orders,
            sessions=sessions,
            mode=FormMode.EDIT if appointment_id else FormMode.CREATE,
            appointment_id=appointment_id,
            **self._form_options(),
            **fields,
        )
        form.reconcile()
        return form

    async def _include_referenced(
        self,
        patient_id: str,
        services: List[Service],
        orders: List[Order],
        service_ids: Iterable[Optional[str]],
        order_ids: Iterable[Optional[str]],
    ) -> None:
        # Packages and services already booked stay visible even when the
        # order is fully attended or the service was retired
        known_orders = {o.id for o in orders}
        for order_id in sorted({i for i in order_ids if i} - known_orders):
            order = await self._order_repository.find_by_id(order_id)
            if order is not None and order.patient_id in (None, patient_id):
                orders.append(order)

        known_services = {s.id for s in services}
        for service_id in sorted({i for i in service_ids if i} - known_services):
            service = await self._service_repository.find_by_id(service_id)
            if service is not None:
                services.append(service)
