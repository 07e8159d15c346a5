"""
Shared fixtures: a small service catalog, patient orders and an in-memory
backend for the API tests.
"""

import os
from datetime import datetime, timedelta

import pytest

# The API tests run against the process-local store
os.environ.setdefault("DATABASE_BACKEND", "memory")
os.environ.setdefault("APP_ENV", "testing")

from clinicflow.domain.entities.appointment import Appointment, AppointmentService
from clinicflow.domain.entities.catalog import Order, OrderSession, Service
from clinicflow.domain.enums.appointment import AppointmentStatus

PATIENT_ID = "patient-1"


@pytest.fixture
def brows():
    return Service(id="svc-brows", name="Brows", base_price=300.0, default_sessions=3)


@pytest.fixture
def lips():
    return Service(id="svc-lips", name="Lips", base_price=400.0, default_sessions=2)


@pytest.fixture
def consult():
    return Service(id="svc-consult", name="Consultation", base_price=50.0, default_sessions=1)


@pytest.fixture
def services(brows, lips, consult):
    return [brows, lips, consult]


def make_order(order_id, service_id, total_sessions, sessions=(), **kwargs):
    """Build an order whose persisted sessions are (appointment_id, number, status) tuples."""
    return Order(
        id=order_id,
        service_id=service_id,
        total_sessions=total_sessions,
        patient_id=kwargs.pop("patient_id", PATIENT_ID),
        appointment_services=[
            OrderSession(
                appointment_service_id=f"{appointment_id}-{order_id}-{number}",
                appointment_id=appointment_id,
                session_number=number,
                appointment_status=status,
            )
            for appointment_id, number, status in sessions
        ],
        **kwargs,
    )


def make_appointment(appointment_id, rows, status=AppointmentStatus.RESERVED, **kwargs):
    """Build an appointment whose rows are (order_id, service_id, number) tuples."""
    return Appointment(
        id=appointment_id,
        patient_id=kwargs.pop("patient_id", PATIENT_ID),
        scheduled_date=kwargs.pop("scheduled_date", datetime.now() + timedelta(days=7)),
        status=status,
        appointment_services=[
            AppointmentService(
                id=f"{appointment_id}-{order_id}-{number}",
                order_id=order_id,
                service_id=service_id,
                session_number=number,
            )
            for order_id, service_id, number in rows
        ],
        **kwargs,
    )


@pytest.fixture
def future_date():
    return datetime.now() + timedelta(days=3)
