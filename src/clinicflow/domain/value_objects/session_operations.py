"""
Session operations diff sent to persistence when an appointment is edited.

The four lists are applied in order: deletions, new orders, session
creation (resolving ``temp_package_id`` against the orders just created),
then price overrides.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class SessionToCreate:
    """A session to attach to an existing order or to a new order by temp ID."""

    service_id: str
    session_number: int
    order_id: Optional[str] = None
    temp_package_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "serviceId": self.service_id,
            "sessionNumber": self.session_number,
        }
        if self.order_id:
            data["orderId"] = self.order_id
        if self.temp_package_id:
            data["tempPackageId"] = self.temp_package_id
        return data


@dataclass(frozen=True)
class NewOrder:
    """An order to create before sessions referencing its temp ID."""

    service_id: str
    total_sessions: int
    temp_package_id: str
    final_price: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "serviceId": self.service_id,
            "totalSessions": self.total_sessions,
            "tempPackageId": self.temp_package_id,
        }
        if self.final_price is not None:
            data["finalPrice"] = self.final_price
        return data


@dataclass(frozen=True)
class OrderPriceUpdate:
    """Custom final price for an existing order."""

    order_id: str
    final_price: float

    def to_dict(self) -> Dict[str, Any]:
        return {"orderId": self.order_id, "finalPrice": self.final_price}


@dataclass
class SessionOperations:
    """Explicit instruction set replaying an appointment's session edits."""

    to_delete: List[str] = field(default_factory=list)
    to_create: List[SessionToCreate] = field(default_factory=list)
    new_orders: List[NewOrder] = field(default_factory=list)
    order_price_updates: List[OrderPriceUpdate] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.to_delete or self.to_create or self.new_orders or self.order_price_updates
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "toDelete": list(self.to_delete),
            "toCreate": [s.to_dict() for s in self.to_create],
            "newOrders": [o.to_dict() for o in self.new_orders],
            "orderPriceUpdates": [u.to_dict() for u in self.order_price_updates],
        }
