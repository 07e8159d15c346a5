"""FastAPI dependency providers.

Repositories are chosen by ``DATABASE_BACKEND``: MongoDB (default) or the
process-local in-memory store.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from ..adapters.db.memory.repositories import (
    InMemoryAppointmentRepository,
    InMemoryOrderRepository,
    InMemoryServiceCatalogRepository,
)
from ..adapters.db.memory.store import InMemoryStore
from ..adapters.db.mongo.repositories.appointment_repository import MongoAppointmentRepository
from ..adapters.db.mongo.repositories.catalog_repository import MongoServiceCatalogRepository
from ..adapters.db.mongo.repositories.order_repository import MongoOrderRepository
from ..application.ports.repositories.appointment_repo import AppointmentRepository
from ..application.ports.repositories.catalog_repo import ServiceCatalogRepository
from ..application.ports.repositories.order_repo import OrderRepository
from ..application.use_cases.create_appointment import CreateAppointmentUseCase
from ..application.use_cases.load_appointment_form import LoadAppointmentFormUseCase
from ..application.use_cases.update_appointment import UpdateAppointmentUseCase
from ..core.config import get_settings


def _use_memory() -> bool:
    return get_settings().database.backend == "memory"


@lru_cache()
def get_memory_store() -> InMemoryStore:
    """Get the process-wide in-memory store."""
    return InMemoryStore()


def get_service_repository() -> ServiceCatalogRepository:
    """Get service catalog repository instance."""
    if _use_memory():
        return InMemoryServiceCatalogRepository(get_memory_store())
    return MongoServiceCatalogRepository()


def get_order_repository() -> OrderRepository:
    """Get order repository instance."""
    if _use_memory():
        return InMemoryOrderRepository(get_memory_store())
    return MongoOrderRepository()


def get_appointment_repository(request: Request) -> AppointmentRepository:
    """Get appointment repository instance."""
    if _use_memory():
        return InMemoryAppointmentRepository(get_memory_store())
    settings = get_settings()
    client = getattr(request.app.state, "mongo_client", None)
    return MongoAppointmentRepository(client, use_transactions=settings.database.use_transactions)


# Dependency annotations for FastAPI
ServiceRepositoryDep = Annotated[ServiceCatalogRepository, Depends(get_service_repository)]
OrderRepositoryDep = Annotated[OrderRepository, Depends(get_order_repository)]
AppointmentRepositoryDep = Annotated[AppointmentRepository, Depends(get_appointment_repository)]


def get_load_form_use_case(
    services: ServiceRepositoryDep,
    orders: OrderRepositoryDep,
    appointments: AppointmentRepositoryDep,
) -> LoadAppointmentFormUseCase:
    return LoadAppointmentFormUseCase(services, orders, appointments)


def get_create_appointment_use_case(appointments: AppointmentRepositoryDep) -> CreateAppointmentUseCase:
    return CreateAppointmentUseCase(appointments)


def get_update_appointment_use_case(appointments: AppointmentRepositoryDep) -> UpdateAppointmentUseCase:
    return UpdateAppointmentUseCase(appointments)


LoadFormUseCaseDep = Annotated[LoadAppointmentFormUseCase, Depends(get_load_form_use_case)]
CreateAppointmentUseCaseDep = Annotated[CreateAppointmentUseCase, Depends(get_create_appointment_use_case)]
UpdateAppointmentUseCaseDep = Annotated[UpdateAppointmentUseCase, Depends(get_update_appointment_use_case)]
