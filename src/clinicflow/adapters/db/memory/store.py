"""
Process-local data store backing the in-memory repositories.

Used for local runs (``DATABASE_BACKEND=memory``) and tests. Orders are kept
without their sessions; ``hydrate_order`` derives them from the stored
appointments, as the document store does.
"""

import copy
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Iterable, Iterator

from clinicflow.domain.entities.appointment import Appointment
from clinicflow.domain.entities.catalog import Order, OrderSession, Service


class InMemoryStore:
    """Services, orders and appointments keyed by ID."""

    def __init__(self) -> None:
        self.services: Dict[str, Service] = {}
        self.orders: Dict[str, Order] = {}
        self.appointments: Dict[str, Appointment] = {}

    def add_services(self, services: Iterable[Service]) -> None:
        for service in services:
            self.services[service.id] = service

    def add_order(self, order: Order) -> None:
        self.orders[order.id] = replace(order, appointment_services=[])

    def add_appointment(self, appointment: Appointment) -> None:
        self.appointments[appointment.id] = copy.deepcopy(appointment)

    def hydrate_order(self, order: Order) -> Order:
        sessions = [
            OrderSession(
                appointment_service_id=row.id,
                appointment_id=appointment.id,
                session_number=row.session_number,
                appointment_status=appointment.status,
            )
            for appointment in self.appointments.values()
            for row in appointment.appointment_services
            if row.order_id == order.id
        ]
        return replace(order, appointment_services=sessions)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Restore orders and appointments if the block raises."""
        orders = copy.deepcopy(self.orders)
        appointments = copy.deepcopy(self.appointments)
        try:
            yield
        except Exception:
            self.orders = orders
            self.appointments = appointments
            raise

    def clear(self) -> None:
        self.services.clear()
        self.orders.clear()
        self.appointments.clear()
