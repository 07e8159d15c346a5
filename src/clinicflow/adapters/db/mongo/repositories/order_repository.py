"""
MongoDB implementation of OrderRepository.

Sessions booked against an order live embedded in appointment documents, so
orders are hydrated with a second query over ``appointment_services.order_id``.
"""

from typing import Any, Dict, Iterable, List, Optional

from clinicflow.application.ports.repositories.order_repo import OrderRepository
from clinicflow.domain.entities.catalog import Order, OrderSession

from ..models.scheduling_m import AppointmentMongo, OrderMongo


async def load_order_sessions(
    order_ids: Iterable[str], session: Optional[Any] = None
) -> Dict[str, List[OrderSession]]:
    """Persisted sessions per order ID, with the owning appointment's status."""
    wanted = set(order_ids)
    sessions: Dict[str, List[OrderSession]] = {order_id: [] for order_id in wanted}
    if not wanted:
        return sessions

    appointments = await AppointmentMongo.find(
        {"appointment_services.order_id": {"$in": sorted(wanted)}}, session=session
    ).to_list()
    for appointment in appointments:
        for row in appointment.appointment_services:
            if row.order_id in wanted:
                sessions[row.order_id].append(
                    OrderSession(
                        appointment_service_id=row.appointment_service_id,
                        appointment_id=appointment.appointment_id,
                        session_number=row.session_number,
                        appointment_status=appointment.status,
                    )
                )
    return sessions


class MongoOrderRepository(OrderRepository):
    """MongoDB implementation of OrderRepository."""

    async def find_by_id(self, order_id: str) -> Optional[Order]:
        """Find an order by ID."""
        order_mongo = await OrderMongo.find_one(OrderMongo.order_id == order_id)
        if not order_mongo:
            return None
        orders = await self._with_sessions([order_mongo])
        return orders[0]

    async def find_by_patient_id(self, patient_id: str) -> List[Order]:
        """Find all orders of a patient, oldest first."""
        orders_mongo = (
            await OrderMongo.find(OrderMongo.patient_id == patient_id)
            .sort("+created_at")
            .to_list()
        )
        return await self._with_sessions(orders_mongo)

    async def find_active_by_patient_id(self, patient_id: str) -> List[Order]:
        """Find orders that still have sessions left to attend."""
        return [o for o in await self.find_by_patient_id(patient_id) if o.is_active]

    async def _with_sessions(self, orders_mongo: List[OrderMongo]) -> List[Order]:
        sessions = await load_order_sessions(o.order_id for o in orders_mongo)
        return [self._mongo_to_domain(o, sessions[o.order_id]) for o in orders_mongo]

    @staticmethod
    def _mongo_to_domain(order_mongo: OrderMongo, sessions: List[OrderSession]) -> Order:
        return Order(
            id=order_mongo.order_id,
            service_id=order_mongo.service_id,
            total_sessions=order_mongo.total_sessions,
            created_at=order_mongo.created_at,
            final_price=order_mongo.final_price,
            patient_id=order_mongo.patient_id,
            appointment_services=sessions,
        )
