"""Service catalog and patient order entities consumed by the scheduling engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Set

from ..enums.appointment import AppointmentStatus


@dataclass(frozen=True)
class Service:
    """Treatment type offered by the clinic."""

    id: str
    name: str
    base_price: float
    default_sessions: int = 1
    is_active: bool = True


@dataclass(frozen=True)
class OrderSession:
    """A persisted session (appointment service row) booked against an order."""

    appointment_service_id: str
    appointment_id: str
    session_number: Optional[int]
    appointment_status: AppointmentStatus = AppointmentStatus.RESERVED

    @property
    def is_cancelled(self) -> bool:
        return self.appointment_status == AppointmentStatus.CANCELLED


@dataclass
class Order:
    """A purchased treatment package (service bought for N sessions)."""

    id: str
    service_id: str
    total_sessions: int
    created_at: datetime = field(default_factory=datetime.utcnow)
    final_price: Optional[float] = None
    patient_id: Optional[str] = None
    appointment_services: List[OrderSession] = field(default_factory=list)

    def non_cancelled_sessions(self) -> List[OrderSession]:
        return [s for s in self.appointment_services if not s.is_cancelled]

    @property
    def completed_sessions(self) -> int:
        """Number of attended sessions."""
        return sum(
            1
            for s in self.appointment_services
            if s.appointment_status == AppointmentStatus.ATTENDED
        )

    @property
    def cancelled_sessions(self) -> int:
        return sum(1 for s in self.appointment_services if s.is_cancelled)

    @property
    def is_active(self) -> bool:
        """An order stays active until every session has been attended."""
        return self.completed_sessions < self.total_sessions

    def occupied_numbers(
        self, exclude_appointment_service_ids: Iterable[str] = ()
    ) -> Set[int]:
        """Session numbers held by non-cancelled persisted sessions."""
        excluded = set(exclude_appointment_service_ids)
        return {
            s.session_number
            for s in self.non_cancelled_sessions()
            if s.session_number and s.appointment_service_id not in excluded
        }

    def has_pending_reservations(
        self, exclude_appointment_id: Optional[str] = None
    ) -> bool:
        """Whether another appointment still holds a reserved session of this order."""
        return any(
            s.appointment_status == AppointmentStatus.RESERVED
            and s.appointment_id != exclude_appointment_id
            for s in self.appointment_services
        )
