"""Service catalog and patient order endpoints."""

from typing import List

from fastapi import APIRouter, Request

from ..deps import OrderRepositoryDep, ServiceRepositoryDep
from ..schemas.appointments import OrderSchema, ServiceSchema
from ..schemas.common import ApiResponse
from ..utils.responses import ok

router = APIRouter(tags=["catalog"])


@router.get("/services", response_model=ApiResponse[List[ServiceSchema]])
async def list_services(request: Request, services: ServiceRepositoryDep):
    """List bookable services."""
    active = await services.find_active()
    return ok(request, data=[ServiceSchema.from_domain(s) for s in active])


@router.get("/patients/{patient_id}/orders", response_model=ApiResponse[List[OrderSchema]])
async def list_patient_orders(request: Request, patient_id: str, orders: OrderRepositoryDep):
    """List the patient's packages that still have sessions to attend."""
    active = await orders.find_active_by_patient_id(patient_id)
    return ok(request, data=[OrderSchema.from_domain(o) for o in active])
