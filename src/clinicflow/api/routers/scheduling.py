"""
Stateless scheduling endpoints.

Each call receives the client-held form state, replays one edit through the
scheduling engine against the current catalog and orders, and returns the new
state with its package views.
"""

import logging

from fastapi import APIRouter, Request

from ...application.form.appointment_form import AppointmentForm
from ...application.presenters.package_group_view import PackageGroupView
from ..deps import LoadFormUseCaseDep
from ..schemas.appointments import (
    AddSessionRequest,
    FormSnapshotSchema,
    FormStateSchema,
    PackagePriceRequest,
    RemoveSessionRequest,
    SessionOperationsSchema,
    snapshot,
)
from ..schemas.common import ApiResponse
from ..utils.responses import ok

router = APIRouter(prefix="/scheduling", tags=["scheduling"])
logger = logging.getLogger("clinicflow.scheduling")


async def restore_form(state: FormStateSchema, load_form: LoadFormUseCaseDep) -> AppointmentForm:
    return await load_form.restore(
        state.patient_id,
        state.entries(),
        appointment_id=state.appointment_id,
        **state.form_fields(),
    )


def form_snapshot(form: AppointmentForm) -> FormSnapshotSchema:
    return snapshot(form, PackageGroupView.for_form(form))


@router.post("/sessions/add", response_model=ApiResponse[FormSnapshotSchema])
async def add_session(request: Request, body: AddSessionRequest, load_form: LoadFormUseCaseDep):
    """Add a session to a new, simulated or existing package."""
    form = await restore_form(body.form, load_form)
    form.add_session(body.service_id, body.order_id)
    return ok(request, data=form_snapshot(form), message="Session added")


@router.post("/sessions/remove", response_model=ApiResponse[FormSnapshotSchema])
async def remove_session(request: Request, body: RemoveSessionRequest, load_form: LoadFormUseCaseDep):
    """Remove a new session or toggle deletion of an existing one."""
    form = await restore_form(body.form, load_form)
    form.remove_session(body.index)
    return ok(request, data=form_snapshot(form), message="Session removed")


@router.post("/packages/preview", response_model=ApiResponse[FormSnapshotSchema])
async def preview_packages(request: Request, body: FormStateSchema, load_form: LoadFormUseCaseDep):
    """Group the form's sessions into packages as they will look once saved."""
    form = await restore_form(body, load_form)
    return ok(request, data=form_snapshot(form))


@router.post("/packages/price", response_model=ApiResponse[FormSnapshotSchema])
async def update_package_price(request: Request, body: PackagePriceRequest, load_form: LoadFormUseCaseDep):
    """Set or reset the custom price of a new package."""
    form = await restore_form(body.form, load_form)
    if body.price is None:
        PackageGroupView.reset_price(form, body.package_key)
    else:
        PackageGroupView.update_price(form, body.package_key, body.price)
    return ok(request, data=form_snapshot(form), message="Price updated")


@router.post("/operations", response_model=ApiResponse[SessionOperationsSchema])
async def build_session_operations(request: Request, body: FormStateSchema, load_form: LoadFormUseCaseDep):
    """Translate the form into the explicit session operations diff."""
    form = await restore_form(body, load_form)
    operations = form.operations()
    logger.debug(
        "Built operations: %d delete, %d create, %d new orders, %d price updates",
        len(operations.to_delete),
        len(operations.to_create),
        len(operations.new_orders),
        len(operations.order_price_updates),
    )
    return ok(request, data=SessionOperationsSchema.from_domain(operations))
