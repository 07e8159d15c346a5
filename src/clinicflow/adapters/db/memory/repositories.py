"""
In-memory implementations of the repository ports.
"""

import copy
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from clinicflow.application.ports.repositories.appointment_repo import AppointmentRepository
from clinicflow.application.ports.repositories.catalog_repo import ServiceCatalogRepository
from clinicflow.application.ports.repositories.order_repo import OrderRepository
from clinicflow.core.exceptions import OperationsCommitError
from clinicflow.domain.entities.appointment import Appointment, AppointmentService
from clinicflow.domain.entities.catalog import Order, Service
from clinicflow.domain.errors import (
    AppointmentNotFoundError,
    OrderNotFoundError,
    ServiceNotFoundError,
)
from clinicflow.domain.value_objects.session_operations import SessionOperations

from .store import InMemoryStore


class InMemoryServiceCatalogRepository(ServiceCatalogRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    async def find_by_id(self, service_id: str) -> Optional[Service]:
        return self._store.services.get(service_id)

    async def find_active(self) -> List[Service]:
        services = [s for s in self._store.services.values() if s.is_active]
        return sorted(services, key=lambda s: s.name)


class InMemoryOrderRepository(OrderRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    async def find_by_id(self, order_id: str) -> Optional[Order]:
        order = self._store.orders.get(order_id)
        return self._store.hydrate_order(order) if order else None

    async def find_by_patient_id(self, patient_id: str) -> List[Order]:
        orders = [o for o in self._store.orders.values() if o.patient_id == patient_id]
        return [
            self._store.hydrate_order(o) for o in sorted(orders, key=lambda o: o.created_at)
        ]

    async def find_active_by_patient_id(self, patient_id: str) -> List[Order]:
        return [o for o in await self.find_by_patient_id(patient_id) if o.is_active]


class InMemoryAppointmentRepository(AppointmentRepository):
    """Applies session diffs with the same checks as the MongoDB repository."""

    def __init__(self, store: InMemoryStore):
        self._store = store

    async def find_by_id(self, appointment_id: str) -> Optional[Appointment]:
        appointment = self._store.appointments.get(appointment_id)
        return copy.deepcopy(appointment) if appointment else None

    async def create(
        self, appointment: Appointment, operations: SessionOperations
    ) -> Appointment:
        stored = copy.deepcopy(appointment)
        stored.appointment_services = []
        additions = SessionOperations(
            to_create=operations.to_create,
            new_orders=operations.new_orders,
            order_price_updates=operations.order_price_updates,
        )
        with self._store.transaction():
            self._store.appointments[stored.id] = stored
            self._apply(stored, appointment.patient_id, additions)
        return copy.deepcopy(stored)

    async def update_details(self, appointment: Appointment) -> Appointment:
        stored = self._store.appointments.get(appointment.id)
        if stored is None:
            raise AppointmentNotFoundError(appointment.id)
        stored.update_details(
            scheduled_date=appointment.scheduled_date,
            duration_minutes=appointment.duration_minutes,
            reservation_amount=appointment.reservation_amount,
            notes=appointment.notes,
        )
        stored.status = appointment.status
        return copy.deepcopy(stored)

    async def apply_session_operations(
        self, appointment_id: str, patient_id: str, operations: SessionOperations
    ) -> Appointment:
        with self._store.transaction():
            stored = self._store.appointments.get(appointment_id)
            if stored is None:
                raise AppointmentNotFoundError(appointment_id)
            self._apply(stored, patient_id, operations)
        return copy.deepcopy(self._store.appointments[appointment_id])

    def _apply(
        self, appointment: Appointment, patient_id: str, operations: SessionOperations
    ) -> None:
        current = {r.id for r in appointment.appointment_services}
        missing = [i for i in operations.to_delete if i not in current]
        if missing:
            raise OperationsCommitError(
                appointment.id,
                "sessions to delete are not part of the appointment",
                {"appointment_service_ids": missing},
            )
        deleted = set(operations.to_delete)
        appointment.appointment_services = [
            r for r in appointment.appointment_services if r.id not in deleted
        ]

        created: Dict[str, str] = {}
        for new_order in operations.new_orders:
            service = self._store.services.get(new_order.service_id)
            if service is None:
                raise ServiceNotFoundError(new_order.service_id)
            order = Order(
                id=uuid.uuid4().hex,
                service_id=new_order.service_id,
                total_sessions=new_order.total_sessions,
                final_price=(
                    new_order.final_price
                    if new_order.final_price is not None
                    else service.base_price
                ),
                patient_id=patient_id,
            )
            self._store.orders[order.id] = order
            created[new_order.temp_package_id] = order.id

        for item in operations.to_create:
            order_id = item.order_id or created.get(item.temp_package_id)
            if order_id is None:
                raise OperationsCommitError(
                    appointment.id, f"no new order for temp package '{item.temp_package_id}'"
                )
            order = self._order_for_patient(appointment.id, order_id, patient_id)
            if order.total_sessions and item.session_number > order.total_sessions:
                raise OperationsCommitError(
                    appointment.id,
                    f"session {item.session_number} exceeds the "
                    f"{order.total_sessions} session(s) of order '{order_id}'",
                    {"order_id": order_id, "session_number": item.session_number},
                )
            taken = {
                s.session_number
                for s in self._store.hydrate_order(order).non_cancelled_sessions()
                if s.session_number
            }
            if item.session_number in taken:
                raise OperationsCommitError(
                    appointment.id,
                    f"session {item.session_number} of order '{order_id}' is already booked",
                    {"order_id": order_id, "session_number": item.session_number},
                )
            appointment.appointment_services.append(
                AppointmentService(
                    id=uuid.uuid4().hex,
                    order_id=order_id,
                    service_id=item.service_id,
                    session_number=item.session_number,
                )
            )

        for update in operations.order_price_updates:
            order = self._order_for_patient(appointment.id, update.order_id, patient_id)
            order.final_price = update.final_price

        appointment.updated_at = datetime.utcnow()

    def _order_for_patient(self, appointment_id: str, order_id: str, patient_id: str) -> Order:
        order = self._store.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.patient_id and order.patient_id != patient_id:
            raise OperationsCommitError(
                appointment_id, f"order '{order_id}' belongs to another patient"
            )
        return order
