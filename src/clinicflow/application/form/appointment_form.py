"""
Appointment form session.

Holds the flat list of sessions planned for one appointment while it is being
authored, together with the scheduling fields, custom package prices and the
counter used to mint temp package IDs. Every edit goes through the scheduling
engine in ``clinicflow.domain.services``.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ...domain.entities.appointment import Appointment
from ...domain.entities.catalog import Order, Service
from ...domain.entities.package_group import PackageGroup
from ...domain.entities.session_entry import ExistingSession, NewSession, SessionEntry
from ...domain.enums.appointment import FormMode
from ...domain.errors import (
    InvalidPriceError,
    OrderNotFoundError,
    PackageUnavailableError,
    ServiceNotFoundError,
)
from ...domain.services.compensation import apply_session_compensation, handle_remove_session
from ...domain.services.grouping import group_indices, simulate_packages
from ...domain.services.numbering import (
    compute_next_session_number,
    is_package_complete,
    package_total_sessions,
)
from ...domain.services.operations import build_operations
from ...domain.value_objects.package_key import PackageKey
from ...domain.value_objects.session_operations import SessionOperations
from ...domain.value_objects.temp_package_id import TEMP_PREFIX, TempPackageId
from ..dto.appointment_dto import (
    AppointmentDetails,
    CreateAppointmentPayload,
    UpdateAppointmentPayload,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvailablePackage:
    """A package the form can still add a session to."""

    package_key: str
    service_id: str
    service_name: str
    next_session_number: int
    total_sessions: int
    order_id: Optional[str] = None
    temp_package_id: Optional[str] = None

    @property
    def is_simulated(self) -> bool:
        return self.temp_package_id is not None


class AppointmentForm:
    """In-memory authoring state for a single appointment."""

    def __init__(
        self,
        patient_id: str,
        services: Iterable[Service],
        patient_orders: Iterable[Order] = (),
        sessions: Optional[Sequence[SessionEntry]] = None,
        mode: FormMode = FormMode.CREATE,
        appointment_id: Optional[str] = None,
        scheduled_date: Optional[datetime] = None,
        duration_minutes: int = 30,
        reservation_amount: Optional[float] = None,
        notes: str = "",
        custom_prices: Optional[Mapping[str, float]] = None,
        temp_package_counter: int = 0,
        temp_package_prefix: str = TEMP_PREFIX,
        default_package_sessions: int = 1,
    ):
        if mode == FormMode.EDIT and not appointment_id:
            raise ValueError("Edit mode requires an appointment ID")

        self.patient_id = patient_id
        self.mode = mode
        self.appointment_id = appointment_id
        self.scheduled_date = scheduled_date
        self.duration_minutes = duration_minutes
        self.reservation_amount = reservation_amount
        self.notes = notes

        self.services: List[Service] = list(services)
        self.patient_orders: List[Order] = list(patient_orders)
        self._services_by_id = {s.id: s for s in self.services}
        self._orders_by_id = {o.id: o for o in self.patient_orders}

        self.sessions: List[SessionEntry] = list(sessions or [])
        self.custom_prices: Dict[str, float] = dict(custom_prices or {})
        self.temp_package_prefix = temp_package_prefix
        self.default_package_sessions = default_package_sessions

        # Never mint an ID already used by a session restored into the form
        minted = [
            TempPackageId(s.temp_package_id).counter + 1
            for s in self.sessions
            if s.temp_package_id
        ]
        self.temp_package_counter = max([temp_package_counter, *minted])

    @classmethod
    def for_edit(
        cls,
        appointment: Appointment,
        services: Iterable[Service],
        orders: Iterable[Order],
        **options,
    ) -> "AppointmentForm":
        """Seed a form from a persisted appointment and its session rows."""
        orders = list(orders)
        orders_by_id = {o.id: o for o in orders}
        sessions: List[SessionEntry] = []

        for row in appointment.appointment_services:
            if not row.order_id or not row.service_id:
                logger.warning(
                    "Skipping appointment service %s without order or service", row.id
                )
                continue
            number = row.session_number
            if not number:
                key = PackageKey.for_order(row.order_id).value
                number = compute_next_session_number(
                    sessions, key, orders_by_id.get(row.order_id)
                )
            sessions.append(
                ExistingSession(
                    service_id=row.service_id,
                    order_id=row.order_id,
                    session_number=number,
                    appointment_service_id=row.id,
                )
            )

        return cls(
            patient_id=appointment.patient_id,
            services=services,
            patient_orders=orders,
            sessions=sessions,
            mode=FormMode.EDIT,
            appointment_id=appointment.id,
            scheduled_date=appointment.scheduled_date,
            duration_minutes=appointment.duration_minutes,
            reservation_amount=appointment.reservation_amount,
            notes=appointment.notes,
            **options,
        )

    @property
    def active_sessions(self) -> List[SessionEntry]:
        return [s for s in self.sessions if s.is_active]

    def _service(self, service_id: str) -> Service:
        service = self._services_by_id.get(service_id)
        if service is None:
            raise ServiceNotFoundError(service_id)
        return service

    def _simulated_total(self, service: Service) -> int:
        return package_total_sessions(service, fallback=self.default_package_sessions)

    def _order_unavailable_reason(self, order: Order, next_number: int) -> Optional[str]:
        if not order.is_active:
            return "all sessions have been attended"
        if order.has_pending_reservations(exclude_appointment_id=self.appointment_id):
            return "another appointment holds a reserved session"
        if is_package_complete(next_number, order.total_sessions):
            return "package is complete"
        return None

    # Session edits

    def add_session(self, service_id: str, order_id: Optional[str] = None) -> List[SessionEntry]:
        """Add a session of ``service_id``.

        ``order_id`` selects the package: a temp package ID joins a package
        simulated in this form, a real order ID joins a persisted package, and
        ``None`` starts a new simulated package.
        """
        service = self._service(service_id)

        if order_id and TempPackageId.is_temp(order_id, self.temp_package_prefix):
            entry = self._join_simulated_package(service, order_id)
        elif order_id:
            entry = self._join_order(service, order_id)
        else:
            entry = self._start_package(service)

        self.sessions = apply_session_compensation(
            self.sessions + [entry], self.patient_orders
        )
        logger.debug(
            "Added session %s to package %s", entry.session_number, entry.package_key
        )
        return self.sessions

    def _join_simulated_package(self, service: Service, temp_package_id: str) -> NewSession:
        indices = group_indices(self.sessions).get(temp_package_id)
        if not indices:
            raise PackageUnavailableError(
                temp_package_id, "simulated package is not part of this form"
            )
        owner = self.sessions[indices[0]].service_id
        if owner != service.id:
            raise PackageUnavailableError(
                temp_package_id, f"package belongs to service '{owner}'"
            )

        number = compute_next_session_number(self.sessions, temp_package_id)
        if is_package_complete(number, self._simulated_total(service)):
            raise PackageUnavailableError(temp_package_id, "package is complete")

        return NewSession(
            service_id=service.id, session_number=number, temp_package_id=temp_package_id
        )

    def _join_order(self, service: Service, order_id: str) -> NewSession:
        order = self._orders_by_id.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)

        key = PackageKey.for_order(order.id).value
        if order.service_id != service.id:
            raise PackageUnavailableError(
                key, f"package belongs to service '{order.service_id}'"
            )

        number = compute_next_session_number(self.sessions, key, order)
        reason = self._order_unavailable_reason(order, number)
        if reason:
            raise PackageUnavailableError(key, reason)

        return NewSession(service_id=service.id, session_number=number, order_id=order.id)

    def _mint_temp_package_id(self, service: Service) -> str:
        temp_id = TempPackageId.generate(
            service.id, self.temp_package_counter, self.temp_package_prefix
        )
        self.temp_package_counter += 1
        return temp_id.value

    def _start_package(self, service: Service) -> NewSession:
        return NewSession(
            service_id=service.id,
            session_number=1,
            temp_package_id=self._mint_temp_package_id(service),
        )

    def remove_session(self, index: int) -> List[SessionEntry]:
        """Drop a new session or toggle deletion of an existing one."""
        self.sessions = handle_remove_session(self.sessions, index, self.patient_orders)
        live = group_indices(self.sessions)
        for key in [k for k in self.custom_prices if k not in live]:
            del self.custom_prices[key]
        return self.sessions

    # Prices

    def update_package_price(self, package_key: str, price: float) -> None:
        if package_key not in group_indices(self.sessions):
            raise PackageUnavailableError(package_key, "package is not part of this form")
        if (
            isinstance(price, bool)
            or not isinstance(price, (int, float))
            or not math.isfinite(price)
            or price < 0
        ):
            raise InvalidPriceError(package_key, price)
        self.custom_prices[package_key] = float(price)

    def clear_package_price(self, package_key: str) -> None:
        self.custom_prices.pop(package_key, None)

    # Restored state

    def reconcile(self) -> List[SessionEntry]:
        """Bring a client-held session list back to a state the edits above produce.

        Standalone new sessions are placed in a simulated package, pending
        deletion/addition pairs are compensated and new sessions renumbered.
        Packages that take new sessions must still accept them within their
        size, and custom prices must be valid prices of packages in the form.
        """
        self.sessions = apply_session_compensation(
            self._place_standalone_sessions(), self.patient_orders
        )

        groups = group_indices(self.sessions)
        for key, indices in groups.items():
            new = [self.sessions[i] for i in indices if self.sessions[i].is_new]
            if new:
                self._check_restored_package(key, new)

        prices, self.custom_prices = self.custom_prices, {}
        for key, price in prices.items():
            if key not in groups:
                logger.debug("Dropping custom price of package %s not in the form", key)
                continue
            self.update_package_price(key, price)
        return self.sessions

    def _place_standalone_sessions(self) -> List[SessionEntry]:
        placed: Dict[str, str] = {}
        sessions: List[SessionEntry] = []
        for entry in self.sessions:
            if isinstance(entry, NewSession) and not (entry.order_id or entry.temp_package_id):
                if entry.package_key not in placed:
                    service = self._service(entry.service_id)
                    placed[entry.package_key] = self._mint_temp_package_id(service)
                entry = entry.in_temp_package(placed[entry.package_key])
            sessions.append(entry)
        return sessions

    def _check_restored_package(self, key: str, new: Sequence[NewSession]) -> None:
        order_id = new[0].order_id
        if order_id:
            order = self._orders_by_id.get(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            owner = order.service_id
            total = package_total_sessions(
                self._services_by_id.get(owner), order, self.default_package_sessions
            )
            if not order.is_active:
                raise PackageUnavailableError(key, "all sessions have been attended")
            if order.has_pending_reservations(exclude_appointment_id=self.appointment_id):
                raise PackageUnavailableError(key, "another appointment holds a reserved session")
        else:
            owner = new[0].service_id
            total = self._simulated_total(self._service(owner))

        stray = sorted({e.service_id for e in new} - {owner})
        if stray:
            raise PackageUnavailableError(key, f"package belongs to service '{owner}'")

        highest = max(e.session_number for e in new)
        if highest > total:
            raise PackageUnavailableError(
                key, f"session {highest} exceeds the {total} session(s) of the package"
            )

    # Derived views

    def package_groups(self) -> List[PackageGroup]:
        return simulate_packages(
            self.sessions,
            self.services,
            self.patient_orders,
            self.custom_prices,
            current_appointment_id=self.appointment_id,
        )

    def available_packages(self, service_id: Optional[str] = None) -> List[AvailablePackage]:
        """Persisted and simulated packages that can still take a session."""
        available: List[AvailablePackage] = []

        for order in self.patient_orders:
            if service_id and order.service_id != service_id:
                continue
            service = self._services_by_id.get(order.service_id)
            if service is None:
                continue
            key = PackageKey.for_order(order.id).value
            number = compute_next_session_number(self.sessions, key, order)
            if self._order_unavailable_reason(order, number):
                continue
            available.append(
                AvailablePackage(
                    package_key=key,
                    service_id=service.id,
                    service_name=service.name,
                    next_session_number=number,
                    total_sessions=order.total_sessions,
                    order_id=order.id,
                )
            )

        for key, indices in group_indices(self.sessions).items():
            first = self.sessions[indices[0]]
            if not first.temp_package_id:
                continue
            if service_id and first.service_id != service_id:
                continue
            service = self._services_by_id.get(first.service_id)
            if service is None:
                continue
            total = self._simulated_total(service)
            number = compute_next_session_number(self.sessions, key)
            if is_package_complete(number, total):
                continue
            available.append(
                AvailablePackage(
                    package_key=key,
                    service_id=service.id,
                    service_name=service.name,
                    next_session_number=number,
                    total_sessions=total,
                    temp_package_id=first.temp_package_id,
                )
            )

        return available

    # Submission

    def operations(self) -> SessionOperations:
        return build_operations(
            self.sessions,
            self.services,
            self.custom_prices,
            default_total_sessions=self.default_package_sessions,
        )

    def details(self) -> AppointmentDetails:
        return AppointmentDetails(
            patient_id=self.patient_id,
            scheduled_date=self.scheduled_date,
            duration_minutes=self.duration_minutes,
            reservation_amount=self.reservation_amount,
            notes=self.notes,
        )

    def to_create_payload(self) -> CreateAppointmentPayload:
        if self.mode != FormMode.CREATE:
            raise ValueError("Create payload requested for a form in edit mode")
        return CreateAppointmentPayload(details=self.details(), operations=self.operations())

    def to_update_payload(self) -> UpdateAppointmentPayload:
        if self.mode != FormMode.EDIT:
            raise ValueError("Update payload requested for a form in create mode")
        return UpdateAppointmentPayload(
            appointment_id=self.appointment_id,
            details=self.details(),
            operations=self.operations(),
        )
