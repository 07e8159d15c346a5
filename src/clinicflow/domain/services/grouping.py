"""
Package grouping strategy.

Partitions the flat list of form sessions into package groups keyed by
``existing-{order_id}``, the temp package ID, or ``new-{service_id}``, and
derives the per-package view (ordering, counts, price, completeness).
"""

from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..entities.catalog import Order, Service
from ..entities.package_group import PackageGroup, SimulatedSession
from ..entities.session_entry import SessionEntry
from ..enums.appointment import PackageType
from ..errors import ServiceNotFoundError
from ..value_objects.package_key import PackageKey
from .numbering import (
    compute_next_session_number,
    is_package_complete,
    package_total_sessions,
)


def package_key(entry: SessionEntry) -> str:
    """Grouping key of a form session."""
    return entry.package_key


def group_indices(entries: Sequence[SessionEntry]) -> Dict[str, List[int]]:
    """Indices of form sessions per package, in order of first appearance."""
    groups: Dict[str, List[int]] = {}
    for index, entry in enumerate(entries):
        groups.setdefault(package_key(entry), []).append(index)
    return groups


def resolve_final_price(
    key: str,
    service: Service,
    order: Optional[Order],
    custom_prices: Optional[Mapping[str, float]] = None,
) -> Optional[float]:
    """Custom price first, then the order's agreed price, then base price for new packages."""
    if custom_prices and key in custom_prices:
        return custom_prices[key]
    if order is not None and order.final_price is not None:
        return float(order.final_price)
    if not PackageKey(key).is_existing:
        return service.base_price
    return None


def _build_group(
    key: str,
    indices: List[int],
    entries: Sequence[SessionEntry],
    services: Mapping[str, Service],
    orders: Mapping[str, Order],
    custom_prices: Optional[Mapping[str, float]],
    current_appointment_id: Optional[str],
) -> PackageGroup:
    first = entries[indices[0]]
    service = services.get(first.service_id)
    if service is None:
        raise ServiceNotFoundError(first.service_id)

    is_existing = PackageKey(key).is_existing
    order = orders.get(first.order_id) if is_existing else None

    sessions = sorted(
        (
            SimulatedSession(entry=entries[i], original_index=i, is_new=entries[i].is_new)
            for i in indices
        ),
        key=lambda s: s.session_number,
    )
    total_sessions = package_total_sessions(service, order, fallback=len(sessions))
    next_number = compute_next_session_number(entries, key, order)

    return PackageGroup(
        id=key,
        type=PackageType.EXISTING if is_existing else PackageType.NEW,
        service_id=service.id,
        service_name=service.name,
        total_sessions=total_sessions,
        sessions=sessions,
        order_id=order.id if order else (first.order_id if is_existing else None),
        order_created_at=order.created_at if order else None,
        final_price=resolve_final_price(key, service, order, custom_prices),
        has_new_sessions=any(s.is_new for s in sessions),
        has_pending_reservations=(
            order.has_pending_reservations(exclude_appointment_id=current_appointment_id)
            if order
            else False
        ),
        completed_sessions=order.completed_sessions if order else 0,
        cancelled_sessions=order.cancelled_sessions if order else 0,
        is_complete=is_package_complete(next_number, total_sessions),
    )


def _sort_key(group: PackageGroup) -> Tuple:
    # Existing packages first by purchase date, then new packages by service name
    if group.type == PackageType.EXISTING:
        return (0, group.order_created_at or datetime.min, group.service_name)
    return (1, datetime.min, group.service_name)


def simulate_packages(
    entries: Sequence[SessionEntry],
    services: Iterable[Service],
    orders: Iterable[Order] = (),
    custom_prices: Optional[Mapping[str, float]] = None,
    current_appointment_id: Optional[str] = None,
) -> List[PackageGroup]:
    """Simulate how form sessions will be grouped into packages once saved.

    Pure: calling it twice on the same list yields equal groups.
    """
    services_by_id = {s.id: s for s in services}
    orders_by_id = {o.id: o for o in orders}

    groups = [
        _build_group(
            key,
            indices,
            entries,
            services_by_id,
            orders_by_id,
            custom_prices,
            current_appointment_id,
        )
        for key, indices in group_indices(entries).items()
    ]
    return sorted(groups, key=_sort_key)
