"""
MongoDB implementation of AppointmentRepository.

A session diff is validated in full before anything is written. When
transactions are enabled (replica set deployments) every write of the diff
shares one client session.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient

from clinicflow.application.ports.repositories.appointment_repo import AppointmentRepository
from clinicflow.core.exceptions import OperationsCommitError
from clinicflow.domain.entities.appointment import Appointment, AppointmentService
from clinicflow.domain.errors import (
    AppointmentNotFoundError,
    OrderNotFoundError,
    ServiceNotFoundError,
)
from clinicflow.domain.value_objects.session_operations import SessionOperations

from ..models.scheduling_m import (
    AppointmentMongo,
    AppointmentServiceMongo,
    OrderMongo,
    ServiceMongo,
)
from .order_repository import load_order_sessions

logger = logging.getLogger(__name__)


class MongoAppointmentRepository(AppointmentRepository):
    """MongoDB implementation of AppointmentRepository."""

    def __init__(
        self, client: Optional[AsyncIOMotorClient] = None, use_transactions: bool = False
    ):
        self._client = client
        self._use_transactions = use_transactions and client is not None

    @asynccontextmanager
    async def _transaction(self):
        if not self._use_transactions:
            yield None
            return
        async with await self._client.start_session() as session:
            async with session.start_transaction():
                yield session

    async def find_by_id(self, appointment_id: str) -> Optional[Appointment]:
        """Find an appointment by ID."""
        appointment_mongo = await AppointmentMongo.find_one(
            AppointmentMongo.appointment_id == appointment_id
        )
        if not appointment_mongo:
            return None
        return self._mongo_to_domain(appointment_mongo)

    async def create(
        self, appointment: Appointment, operations: SessionOperations
    ) -> Appointment:
        """Insert an appointment with its new orders and sessions."""
        appointment_mongo = self._domain_to_mongo(appointment)
        appointment_mongo.appointment_services = []
        additions = SessionOperations(
            to_create=operations.to_create,
            new_orders=operations.new_orders,
            order_price_updates=operations.order_price_updates,
        )

        async with self._transaction() as session:
            writes = await self._plan(appointment_mongo, appointment.patient_id, additions, session)
            await self._write_orders(writes, session)
            await appointment_mongo.insert(session=session)

        return self._mongo_to_domain(appointment_mongo)

    async def update_details(self, appointment: Appointment) -> Appointment:
        """Persist scheduling fields."""
        appointment_mongo = await AppointmentMongo.find_one(
            AppointmentMongo.appointment_id == appointment.id
        )
        if not appointment_mongo:
            raise AppointmentNotFoundError(appointment.id)

        appointment_mongo.scheduled_date = appointment.scheduled_date
        appointment_mongo.duration_minutes = appointment.duration_minutes
        appointment_mongo.reservation_amount = appointment.reservation_amount
        appointment_mongo.notes = appointment.notes
        appointment_mongo.status = appointment.status
        appointment_mongo.updated_at = datetime.utcnow()
        await appointment_mongo.save()

        return self._mongo_to_domain(appointment_mongo)

    async def apply_session_operations(
        self, appointment_id: str, patient_id: str, operations: SessionOperations
    ) -> Appointment:
        """Apply deletions, new orders, new sessions and price updates."""
        async with self._transaction() as session:
            appointment_mongo = await AppointmentMongo.find_one(
                AppointmentMongo.appointment_id == appointment_id, session=session
            )
            if not appointment_mongo:
                raise AppointmentNotFoundError(appointment_id)

            writes = await self._plan(appointment_mongo, patient_id, operations, session)
            await self._write_orders(writes, session)
            appointment_mongo.updated_at = datetime.utcnow()
            await appointment_mongo.save(session=session)

        logger.debug(
            "Applied session operations to appointment %s (transaction=%s)",
            appointment_id,
            self._use_transactions,
        )
        return self._mongo_to_domain(appointment_mongo)

    async def _plan(
        self,
        appointment_mongo: AppointmentMongo,
        patient_id: str,
        operations: SessionOperations,
        session: Optional[Any],
    ) -> List[OrderMongo]:
        """Validate the diff and apply it to the in-memory document.

        Returns the order documents that must be written.
        """
        appointment_id = appointment_mongo.appointment_id

        # 1. Deletions
        current = {r.appointment_service_id for r in appointment_mongo.appointment_services}
        missing = [i for i in operations.to_delete if i not in current]
        if missing:
            raise OperationsCommitError(
                appointment_id,
                "sessions to delete are not part of the appointment",
                {"appointment_service_ids": missing},
            )
        deleted = set(operations.to_delete)
        appointment_mongo.appointment_services = [
            r for r in appointment_mongo.appointment_services
            if r.appointment_service_id not in deleted
        ]

        # 2. New orders, keyed by the temp package ID they replace
        service_ids = sorted({o.service_id for o in operations.new_orders})
        services = {
            s.service_id: s
            for s in await ServiceMongo.find(
                {"service_id": {"$in": service_ids}}, session=session
            ).to_list()
        }
        created: Dict[str, OrderMongo] = {}
        for new_order in operations.new_orders:
            service = services.get(new_order.service_id)
            if service is None:
                raise ServiceNotFoundError(new_order.service_id)
            created[new_order.temp_package_id] = OrderMongo(
                order_id=uuid.uuid4().hex,
                patient_id=patient_id,
                service_id=new_order.service_id,
                total_sessions=new_order.total_sessions,
                final_price=(
                    new_order.final_price
                    if new_order.final_price is not None
                    else service.base_price
                ),
            )

        referenced = {s.order_id for s in operations.to_create if s.order_id}
        referenced |= {u.order_id for u in operations.order_price_updates}
        existing = {
            o.order_id: o
            for o in await OrderMongo.find(
                {"order_id": {"$in": sorted(referenced)}}, session=session
            ).to_list()
        }
        for order_id in sorted(referenced):
            order = existing.get(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            if order.patient_id != patient_id:
                raise OperationsCommitError(
                    appointment_id, f"order '{order_id}' belongs to another patient"
                )

        # 3. Sessions
        new_rows: List[AppointmentServiceMongo] = []
        for item in operations.to_create:
            if item.order_id:
                order = existing[item.order_id]
            else:
                order = created.get(item.temp_package_id)
                if order is None:
                    raise OperationsCommitError(
                        appointment_id,
                        f"no new order for temp package '{item.temp_package_id}'",
                    )
            order_id = order.order_id
            if order.total_sessions and item.session_number > order.total_sessions:
                raise OperationsCommitError(
                    appointment_id,
                    f"session {item.session_number} exceeds the "
                    f"{order.total_sessions} session(s) of order '{order_id}'",
                    {"order_id": order_id, "session_number": item.session_number},
                )
            new_rows.append(
                AppointmentServiceMongo(
                    appointment_service_id=uuid.uuid4().hex,
                    order_id=order_id,
                    service_id=item.service_id,
                    session_number=item.session_number,
                )
            )
        await self._check_session_numbers(appointment_mongo, new_rows, session)
        appointment_mongo.appointment_services.extend(new_rows)

        # 4. Price overrides
        now = datetime.utcnow()
        for update in operations.order_price_updates:
            order = existing[update.order_id]
            order.final_price = update.final_price
            order.updated_at = now

        updated = [existing[u.order_id] for u in operations.order_price_updates]
        return list(created.values()) + updated

    async def _check_session_numbers(
        self,
        appointment_mongo: AppointmentMongo,
        new_rows: List[AppointmentServiceMongo],
        session: Optional[Any],
    ) -> None:
        """Reject rows whose number is already booked in the same order."""
        order_ids = {r.order_id for r in new_rows}
        persisted = await load_order_sessions(order_ids, session)

        for order_id in order_ids:
            taken = {
                s.session_number
                for s in persisted[order_id]
                if s.session_number
                and not s.is_cancelled
                and s.appointment_id != appointment_mongo.appointment_id
            }
            taken |= {
                r.session_number
                for r in appointment_mongo.appointment_services
                if r.order_id == order_id and r.session_number
            }
            for row in new_rows:
                if row.order_id != order_id:
                    continue
                if row.session_number in taken:
                    raise OperationsCommitError(
                        appointment_mongo.appointment_id,
                        f"session {row.session_number} of order '{order_id}' is already booked",
                        {"order_id": order_id, "session_number": row.session_number},
                    )
                taken.add(row.session_number)

    async def _write_orders(self, orders: List[OrderMongo], session: Optional[Any]) -> None:
        for order in orders:
            if order.id is None:
                await order.insert(session=session)
            else:
                await order.save(session=session)

    @staticmethod
    def _domain_to_mongo(appointment: Appointment) -> AppointmentMongo:
        return AppointmentMongo(
            appointment_id=appointment.id,
            patient_id=appointment.patient_id,
            scheduled_date=appointment.scheduled_date,
            duration_minutes=appointment.duration_minutes,
            status=appointment.status,
            reservation_amount=appointment.reservation_amount,
            notes=appointment.notes,
            appointment_services=[
                AppointmentServiceMongo(
                    appointment_service_id=s.id,
                    order_id=s.order_id,
                    service_id=s.service_id,
                    session_number=s.session_number,
                )
                for s in appointment.appointment_services
            ],
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
        )

    @staticmethod
    def _mongo_to_domain(appointment_mongo: AppointmentMongo) -> Appointment:
        return Appointment(
            id=appointment_mongo.appointment_id,
            patient_id=appointment_mongo.patient_id,
            scheduled_date=appointment_mongo.scheduled_date,
            duration_minutes=appointment_mongo.duration_minutes,
            status=appointment_mongo.status,
            reservation_amount=appointment_mongo.reservation_amount,
            notes=appointment_mongo.notes,
            appointment_services=[
                AppointmentService(
                    id=r.appointment_service_id,
                    order_id=r.order_id,
                    service_id=r.service_id,
                    session_number=r.session_number,
                )
                for r in appointment_mongo.appointment_services
            ],
            created_at=appointment_mongo.created_at,
            updated_at=appointment_mongo.updated_at,
        )
