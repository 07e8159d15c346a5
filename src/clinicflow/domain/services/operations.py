"""
Operation diff builder.

Walks the final form session list once and produces the explicit
``SessionOperations`` the persistence layer replays atomically.
"""

from typing import Iterable, Mapping, Optional, Sequence, Set

from ..entities.catalog import Service
from ..entities.session_entry import ExistingSession, SessionEntry
from ..errors import SessionInvariantError
from ..value_objects.package_key import PackageKey
from ..value_objects.session_operations import (
    NewOrder,
    OrderPriceUpdate,
    SessionOperations,
    SessionToCreate,
)


def build_operations(
    entries: Sequence[SessionEntry],
    services: Iterable[Service],
    custom_prices: Optional[Mapping[str, float]] = None,
    default_total_sessions: int = 1,
) -> SessionOperations:
    """Translate form sessions into delete/create/order/price instructions."""
    services_by_id = {s.id: s for s in services}
    prices = custom_prices or {}
    operations = SessionOperations()

    seen_temp_packages: Set[str] = set()
    seen_orders: Set[str] = set()

    for entry in entries:
        if isinstance(entry, ExistingSession):
            if entry.marked_for_deletion:
                operations.to_delete.append(entry.appointment_service_id)
        elif entry.order_id:
            operations.to_create.append(
                SessionToCreate(
                    service_id=entry.service_id,
                    session_number=entry.session_number,
                    order_id=entry.order_id,
                )
            )
        elif entry.temp_package_id:
            if entry.temp_package_id not in seen_temp_packages:
                service = services_by_id.get(entry.service_id)
                total = (
                    service.default_sessions
                    if service and service.default_sessions
                    else default_total_sessions
                )
                operations.new_orders.append(
                    NewOrder(
                        service_id=entry.service_id,
                        total_sessions=total,
                        temp_package_id=entry.temp_package_id,
                        final_price=prices.get(entry.temp_package_id),
                    )
                )
                seen_temp_packages.add(entry.temp_package_id)

            operations.to_create.append(
                SessionToCreate(
                    service_id=entry.service_id,
                    session_number=entry.session_number,
                    temp_package_id=entry.temp_package_id,
                )
            )
        else:
            raise SessionInvariantError(
                f"New session of service '{entry.service_id}' has no package",
                {"service_id": entry.service_id, "session_number": entry.session_number},
            )

        if entry.order_id and entry.order_id not in seen_orders:
            seen_orders.add(entry.order_id)
            price_key = PackageKey.for_order(entry.order_id).value
            if price_key in prices:
                operations.order_price_updates.append(
                    OrderPriceUpdate(order_id=entry.order_id, final_price=prices[price_key])
                )

    return operations
