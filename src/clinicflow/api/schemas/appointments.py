"""
Scheduling and appointment schemas.

Payloads use camelCase keys on the wire (``toDelete``, ``tempPackageId`` ...)
and accept snake_case on input as well.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field, field_validator

from ...application.form.appointment_form import AppointmentForm, AvailablePackage
from ...application.presenters.package_group_view import PackageGroupCard, SessionRow
from ...domain.entities.appointment import Appointment
from ...domain.entities.catalog import Order, Service
from ...domain.entities.session_entry import ExistingSession, NewSession, SessionEntry
from ...domain.enums.appointment import AppointmentStatus, PackageType
from ...domain.errors import SessionInvariantError
from ...domain.value_objects.session_operations import SessionOperations
from ...domain.value_objects.temp_package_id import TempPackageId
from .common import CamelModel


# ============================================================================
# SESSION OPERATIONS
# ============================================================================


class SessionToCreateSchema(CamelModel):
    service_id: str
    session_number: int
    order_id: Optional[str] = None
    temp_package_id: Optional[str] = None


class NewOrderSchema(CamelModel):
    service_id: str
    total_sessions: int
    temp_package_id: str
    final_price: Optional[float] = None


class OrderPriceUpdateSchema(CamelModel):
    order_id: str
    final_price: float


class SessionOperationsSchema(CamelModel):
    """Explicit diff applied to an appointment's sessions."""

    to_delete: List[str] = Field(default_factory=list)
    to_create: List[SessionToCreateSchema] = Field(default_factory=list)
    new_orders: List[NewOrderSchema] = Field(default_factory=list)
    order_price_updates: List[OrderPriceUpdateSchema] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, operations: SessionOperations) -> "SessionOperationsSchema":
        return cls.model_validate(operations.to_dict())


# ============================================================================
# FORM STATE
# ============================================================================


class SessionEntrySchema(CamelModel):
    """A form session. Rows with ``appointmentServiceId`` are existing sessions."""

    service_id: str = Field(..., min_length=1)
    session_number: Optional[int] = None
    order_id: Optional[str] = None
    temp_package_id: Optional[str] = None
    appointment_service_id: Optional[str] = None
    marked_for_deletion: bool = False

    @field_validator("temp_package_id")
    @classmethod
    def validate_temp_package_id(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            TempPackageId(v)
        return v

    def to_entry(self) -> SessionEntry:
        if self.appointment_service_id:
            return ExistingSession(
                service_id=self.service_id,
                order_id=self.order_id,
                session_number=self.session_number,
                appointment_service_id=self.appointment_service_id,
                marked_for_deletion=self.marked_for_deletion,
            )
        if self.marked_for_deletion:
            raise SessionInvariantError(
                "A session that is not saved yet cannot be marked for deletion",
                {"service_id": self.service_id},
            )
        return NewSession(
            service_id=self.service_id,
            session_number=self.session_number,
            order_id=self.order_id,
            temp_package_id=self.temp_package_id,
        )

    @classmethod
    def from_entry(cls, entry: SessionEntry) -> "SessionEntrySchema":
        return cls(
            service_id=entry.service_id,
            session_number=entry.session_number,
            order_id=entry.order_id,
            temp_package_id=entry.temp_package_id,
            appointment_service_id=entry.appointment_service_id,
            marked_for_deletion=entry.marked_for_deletion,
        )


class FormStateSchema(CamelModel):
    """Client-held state of an appointment form."""

    patient_id: str = ""
    appointment_id: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    duration_minutes: int = 30
    reservation_amount: Optional[float] = None
    notes: str = ""
    sessions: List[SessionEntrySchema] = Field(default_factory=list)
    custom_prices: Dict[str, float] = Field(default_factory=dict)
    temp_package_counter: int = Field(0, ge=0)

    def entries(self) -> List[SessionEntry]:
        return [s.to_entry() for s in self.sessions]

    def form_fields(self) -> Dict[str, object]:
        return {
            "scheduled_date": self.scheduled_date,
            "duration_minutes": self.duration_minutes,
            "reservation_amount": self.reservation_amount,
            "notes": self.notes,
            "custom_prices": self.custom_prices,
            "temp_package_counter": self.temp_package_counter,
        }

    @classmethod
    def from_form(cls, form: AppointmentForm) -> "FormStateSchema":
        return cls(
            patient_id=form.patient_id,
            appointment_id=form.appointment_id,
            scheduled_date=form.scheduled_date,
            duration_minutes=form.duration_minutes,
            reservation_amount=form.reservation_amount,
            notes=form.notes,
            sessions=[SessionEntrySchema.from_entry(e) for e in form.sessions],
            custom_prices=dict(form.custom_prices),
            temp_package_counter=form.temp_package_counter,
        )


class SessionRowSchema(CamelModel):
    session_number: int
    state: str
    label: str
    original_index: int
    appointment_service_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: SessionRow) -> "SessionRowSchema":
        return cls(**row.__dict__)


class PackageGroupCardSchema(CamelModel):
    package_key: str
    type: PackageType
    service_id: str
    service_name: str
    progress_label: str
    session_count: int
    total_sessions: int
    completed_sessions: int
    has_pending_reservations: bool
    is_complete: bool
    final_price: Optional[float] = None
    base_price: Optional[float] = None
    discount_percentage: Optional[float] = None
    price_editable: bool
    order_id: Optional[str] = None
    order_created_at: Optional[datetime] = None
    sessions: List[SessionRowSchema] = Field(default_factory=list)

    @classmethod
    def from_card(cls, card: PackageGroupCard) -> "PackageGroupCardSchema":
        data = dict(card.__dict__)
        data["sessions"] = [SessionRowSchema.from_row(r) for r in card.sessions]
        return cls(**data)


class AvailablePackageSchema(CamelModel):
    package_key: str
    service_id: str
    service_name: str
    next_session_number: int
    total_sessions: int
    order_id: Optional[str] = None
    temp_package_id: Optional[str] = None
    is_simulated: bool = False

    @classmethod
    def from_domain(cls, package: AvailablePackage) -> "AvailablePackageSchema":
        return cls(**package.__dict__, is_simulated=package.is_simulated)


class FormSnapshotSchema(CamelModel):
    """Form state plus the views derived from it."""

    form: FormStateSchema
    packages: List[PackageGroupCardSchema] = Field(default_factory=list)
    available_packages: List[AvailablePackageSchema] = Field(default_factory=list)


# ============================================================================
# REQUESTS
# ============================================================================


class AddSessionRequest(CamelModel):
    form: FormStateSchema
    service_id: str = Field(..., min_length=1)
    order_id: Optional[str] = Field(
        None, description="Existing order ID or temp package ID; omit to start a new package"
    )


class RemoveSessionRequest(CamelModel):
    form: FormStateSchema
    index: int = Field(..., description="Position of the session in form.sessions")


class PackagePriceRequest(CamelModel):
    form: FormStateSchema
    package_key: str = Field(..., min_length=1)
    price: Optional[float] = Field(None, description="New price; omit to restore the base price")


# ============================================================================
# CATALOG / PERSISTED ENTITIES
# ============================================================================


class ServiceSchema(CamelModel):
    id: str
    name: str
    base_price: float
    default_sessions: int
    is_active: bool

    @classmethod
    def from_domain(cls, service: Service) -> "ServiceSchema":
        return cls(**service.__dict__)


class OrderSessionSchema(CamelModel):
    appointment_service_id: str
    appointment_id: str
    session_number: Optional[int] = None
    appointment_status: AppointmentStatus


class OrderSchema(CamelModel):
    id: str
    service_id: str
    total_sessions: int
    completed_sessions: int
    final_price: Optional[float] = None
    created_at: datetime
    sessions: List[OrderSessionSchema] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, order: Order) -> "OrderSchema":
        return cls(
            id=order.id,
            service_id=order.service_id,
            total_sessions=order.total_sessions,
            completed_sessions=order.completed_sessions,
            final_price=order.final_price,
            created_at=order.created_at,
            sessions=[OrderSessionSchema(**s.__dict__) for s in order.appointment_services],
        )


class AppointmentServiceSchema(CamelModel):
    id: str
    order_id: str
    service_id: str
    session_number: Optional[int] = None


class AppointmentSchema(CamelModel):
    id: str
    patient_id: str
    scheduled_date: datetime
    duration_minutes: int
    status: AppointmentStatus
    reservation_amount: Optional[float] = None
    notes: str = ""
    appointment_services: List[AppointmentServiceSchema] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, appointment: Appointment) -> "AppointmentSchema":
        data = dict(appointment.__dict__)
        data["appointment_services"] = [
            AppointmentServiceSchema(**s.__dict__) for s in appointment.appointment_services
        ]
        return cls(**data)


def snapshot(form: AppointmentForm, cards: List[PackageGroupCard]) -> FormSnapshotSchema:
    """Serialize a form with its rendered package cards."""
    return FormSnapshotSchema(
        form=FormStateSchema.from_form(form),
        packages=[PackageGroupCardSchema.from_card(c) for c in cards],
        available_packages=[AvailablePackageSchema.from_domain(p) for p in form.available_packages()],
    )
