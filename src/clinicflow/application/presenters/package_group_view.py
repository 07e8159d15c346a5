"""
Render-ready view model of simulated package groups.

Turns ``PackageGroup`` values into cards with a header (counts, price,
discount) and one row per session, and routes price edits back into the
form's price map.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional

from ...domain.entities.catalog import Service
from ...domain.entities.package_group import PackageGroup, SimulatedSession
from ...domain.enums.appointment import PackageType
from ...domain.errors import PackageUnavailableError
from ..form.appointment_form import AppointmentForm


@dataclass(frozen=True)
class SessionRow:
    session_number: int
    state: str  # new | marked_for_deletion | existing
    label: str
    original_index: int
    appointment_service_id: Optional[str] = None


@dataclass(frozen=True)
class PackageGroupCard:
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
    final_price: Optional[float]
    base_price: Optional[float]
    discount_percentage: Optional[float]
    price_editable: bool
    order_id: Optional[str] = None
    order_created_at: Optional[datetime] = None
    sessions: List[SessionRow] = field(default_factory=list)


def _session_state(session: SimulatedSession) -> str:
    if session.is_new:
        return "new"
    if session.marked_for_deletion:
        return "marked_for_deletion"
    return "existing"


def discount_percentage(base_price: Optional[float], final_price: Optional[float]) -> Optional[float]:
    """Percentage off the base price, or None when there is no discount."""
    if not base_price or final_price is None or final_price >= base_price:
        return None
    return round((base_price - final_price) / base_price * 100, 1)


class PackageGroupView:
    """Presenter for the package groups of an appointment form."""

    @staticmethod
    def render(groups: Iterable[PackageGroup], services: Iterable[Service]) -> List[PackageGroupCard]:
        services_by_id = {s.id: s for s in services}
        cards = []
        for group in groups:
            service = services_by_id.get(group.service_id)
            base_price = service.base_price if service else None
            rows = [
                SessionRow(
                    session_number=s.session_number,
                    state=_session_state(s),
                    label=f"Session {s.session_number} of {group.total_sessions}",
                    original_index=s.original_index,
                    appointment_service_id=s.entry.appointment_service_id,
                )
                for s in group.sessions
            ]
            count = group.active_session_count
            cards.append(
                PackageGroupCard(
                    package_key=group.id,
                    type=group.type,
                    service_id=group.service_id,
                    service_name=group.service_name,
                    progress_label=f"{count} of {group.total_sessions}",
                    session_count=count,
                    total_sessions=group.total_sessions,
                    completed_sessions=group.completed_sessions,
                    has_pending_reservations=group.has_pending_reservations,
                    is_complete=group.is_complete,
                    final_price=group.final_price,
                    base_price=base_price,
                    discount_percentage=discount_percentage(base_price, group.final_price),
                    price_editable=group.type == PackageType.NEW,
                    order_id=group.order_id,
                    order_created_at=group.order_created_at,
                    sessions=rows,
                )
            )
        return cards

    @classmethod
    def for_form(cls, form: AppointmentForm) -> List[PackageGroupCard]:
        return cls.render(form.package_groups(), form.services)

    @staticmethod
    def update_price(form: AppointmentForm, package_key: str, price: float) -> None:
        """Apply a custom price to a new package of the form."""
        if not any(g.id == package_key and g.type == PackageType.NEW for g in form.package_groups()):
            raise PackageUnavailableError(package_key, "only new packages can be repriced here")
        form.update_package_price(package_key, price)

    @staticmethod
    def reset_price(form: AppointmentForm, package_key: str) -> None:
        """Drop the custom price so the package falls back to the base price."""
        form.clear_package_price(package_key)
