"""Appointment persistence endpoints."""

from fastapi import APIRouter, Request, status

from ...domain.errors import AppointmentNotFoundError
from ..deps import (
    AppointmentRepositoryDep,
    CreateAppointmentUseCaseDep,
    LoadFormUseCaseDep,
    UpdateAppointmentUseCaseDep,
)
from ..errors import ValidationError
from ..schemas.appointments import AppointmentSchema, FormSnapshotSchema, FormStateSchema
from ..schemas.common import ApiResponse
from ..utils.responses import ok
from .scheduling import form_snapshot, restore_form

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApiResponse[AppointmentSchema])
async def create_appointment(
    request: Request,
    body: FormStateSchema,
    load_form: LoadFormUseCaseDep,
    create: CreateAppointmentUseCaseDep,
):
    """Persist a new appointment with its packages and sessions."""
    if body.appointment_id:
        raise ValidationError("appointmentId must not be set when creating an appointment")
    form = await restore_form(body, load_form)
    appointment = await create.execute(form)
    return ok(request, data=AppointmentSchema.from_domain(appointment), message="Appointment created")


@router.get("/{appointment_id}", response_model=ApiResponse[AppointmentSchema])
async def get_appointment(request: Request, appointment_id: str, appointments: AppointmentRepositoryDep):
    """Fetch an appointment with its sessions."""
    appointment = await appointments.find_by_id(appointment_id)
    if appointment is None:
        raise AppointmentNotFoundError(appointment_id)
    return ok(request, data=AppointmentSchema.from_domain(appointment))


@router.get("/{appointment_id}/form", response_model=ApiResponse[FormSnapshotSchema])
async def open_appointment_form(request: Request, appointment_id: str, load_form: LoadFormUseCaseDep):
    """Open an edit form seeded from the persisted appointment."""
    form = await load_form.execute(appointment_id=appointment_id)
    return ok(request, data=form_snapshot(form))


@router.put("/{appointment_id}", response_model=ApiResponse[AppointmentSchema])
async def update_appointment(
    request: Request,
    appointment_id: str,
    body: FormStateSchema,
    load_form: LoadFormUseCaseDep,
    update: UpdateAppointmentUseCaseDep,
):
    """Save scheduling changes and apply the session operations diff."""
    state = body.model_copy(update={"appointment_id": appointment_id})
    form = await restore_form(state, load_form)
    appointment = await update.execute(form)
    return ok(request, data=AppointmentSchema.from_domain(appointment), message="Appointment updated")
