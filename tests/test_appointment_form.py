"""
Appointment form tests: adding, removing, pricing and submitting sessions.
"""

import math

import pytest

from clinicflow.application.form.appointment_form import AppointmentForm
from clinicflow.domain.entities.session_entry import ExistingSession, NewSession
from clinicflow.domain.enums.appointment import AppointmentStatus, FormMode
from clinicflow.domain.errors import (
    InvalidPriceError,
    OrderNotFoundError,
    PackageUnavailableError,
    ServiceNotFoundError,
)

from conftest import PATIENT_ID, make_appointment, make_order


@pytest.fixture
def form(services):
    return AppointmentForm(patient_id=PATIENT_ID, services=services)


def test_first_session_starts_a_simulated_package(form):
    sessions = form.add_session("svc-brows")
    assert sessions == [NewSession("svc-brows", 1, temp_package_id="temp-svc-brows-0")]
    assert form.temp_package_counter == 1


def test_second_new_package_gets_a_fresh_temp_id(form):
    form.add_session("svc-brows")
    form.add_session("svc-brows")
    assert [s.temp_package_id for s in form.sessions] == ["temp-svc-brows-0", "temp-svc-brows-1"]


def test_joining_a_simulated_package_takes_the_next_number(form):
    form.add_session("svc-brows")
    form.add_session("svc-brows", "temp-svc-brows-0")
    assert [s.session_number for s in form.sessions] == [1, 2]


def test_simulated_package_cannot_overflow(form):
    form.add_session("svc-lips")
    form.add_session("svc-lips", "temp-svc-lips-0")
    with pytest.raises(PackageUnavailableError):
        form.add_session("svc-lips", "temp-svc-lips-0")


def test_simulated_package_must_exist_and_match_service(form):
    with pytest.raises(PackageUnavailableError):
        form.add_session("svc-brows", "temp-svc-brows-7")
    form.add_session("svc-brows")
    with pytest.raises(PackageUnavailableError):
        form.add_session("svc-lips", "temp-svc-brows-0")


def test_unknown_service_is_rejected(form):
    with pytest.raises(ServiceNotFoundError):
        form.add_session("svc-missing")


def test_joining_an_order_continues_after_booked_sessions(services):
    # Order of 2 with session 1 already booked elsewhere and attended
    order = make_order("o1", "svc-lips", 2, sessions=[("appt-0", 1, AppointmentStatus.ATTENDED)])
    form = AppointmentForm(patient_id=PATIENT_ID, services=services, patient_orders=[order])

    form.add_session("svc-lips", "o1")

    assert form.sessions == [NewSession("svc-lips", 2, order_id="o1")]
    (group,) = form.package_groups()
    assert group.is_complete
    assert form.available_packages("svc-lips") == []


def test_unknown_order_is_rejected(form):
    with pytest.raises(OrderNotFoundError):
        form.add_session("svc-brows", "o-missing")


def test_order_of_another_service_is_rejected(services):
    order = make_order("o1", "svc-lips", 2)
    form = AppointmentForm(patient_id=PATIENT_ID, services=services, patient_orders=[order])
    with pytest.raises(PackageUnavailableError):
        form.add_session("svc-brows", "o1")


def test_order_with_pending_reservation_is_unavailable(services):
    order = make_order("o1", "svc-brows", 3, sessions=[("appt-9", 1, AppointmentStatus.RESERVED)])
    form = AppointmentForm(patient_id=PATIENT_ID, services=services, patient_orders=[order])
    with pytest.raises(PackageUnavailableError) as exc_info:
        form.add_session("svc-brows", "o1")
    assert "reserved" in exc_info.value.details["reason"]


def test_marking_then_adding_restores_the_original_sessions(services):
    order = make_order(
        "o1",
        "svc-lips",
        2,
        sessions=[("appt-1", 1, AppointmentStatus.RESERVED), ("appt-1", 2, AppointmentStatus.RESERVED)],
    )
    appointment = make_appointment("appt-1", [("o1", "svc-lips", 1), ("o1", "svc-lips", 2)])
    form = AppointmentForm.for_edit(appointment, services, [order])
    original = list(form.sessions)

    form.remove_session(1)
    assert form.sessions[1].marked_for_deletion
    form.add_session("svc-lips", "o1")

    assert form.sessions == original
    assert form.operations().is_empty


def test_for_edit_numbers_rows_without_a_session_number(services):
    order = make_order("o1", "svc-brows", 3)
    appointment = make_appointment("appt-1", [("o1", "svc-brows", 1), ("o1", "svc-brows", None)])
    form = AppointmentForm.for_edit(appointment, services, [order])
    assert form.mode == FormMode.EDIT
    assert [s.session_number for s in form.sessions] == [1, 2]
    assert all(isinstance(s, ExistingSession) for s in form.sessions)


def test_restored_temp_ids_are_never_reminted(services):
    form = AppointmentForm(
        patient_id=PATIENT_ID,
        services=services,
        sessions=[NewSession("svc-brows", 1, temp_package_id="temp-svc-brows-4")],
    )
    form.add_session("svc-brows")
    assert form.sessions[-1].temp_package_id == "temp-svc-brows-5"


def test_edit_mode_requires_an_appointment(services):
    with pytest.raises(ValueError):
        AppointmentForm(patient_id=PATIENT_ID, services=services, mode=FormMode.EDIT)


def test_removing_a_session_drops_its_custom_price(form):
    form.add_session("svc-brows")
    form.update_package_price("temp-svc-brows-0", 180)
    form.remove_session(0)
    assert form.custom_prices == {}


@pytest.mark.parametrize("price", [-1, math.inf, math.nan, True, "100"])
def test_invalid_prices_are_rejected(form, price):
    form.add_session("svc-brows")
    with pytest.raises(InvalidPriceError):
        form.update_package_price("temp-svc-brows-0", price)


def test_price_of_unknown_package_is_rejected(form):
    with pytest.raises(PackageUnavailableError):
        form.update_package_price("temp-svc-brows-0", 10)


def test_clear_package_price_falls_back_to_base_price(form, brows):
    form.add_session("svc-brows")
    form.update_package_price("temp-svc-brows-0", 120.0)
    form.clear_package_price("temp-svc-brows-0")
    assert form.package_groups()[0].final_price == brows.base_price


def test_available_packages_lists_orders_and_simulated_packages(services):
    order = make_order("o1", "svc-brows", 3)
    form = AppointmentForm(patient_id=PATIENT_ID, services=services, patient_orders=[order])
    form.add_session("svc-brows")

    available = form.available_packages("svc-brows")
    assert [(p.package_key, p.next_session_number, p.is_simulated) for p in available] == [
        ("existing-o1", 1, False),
        ("temp-svc-brows-0", 2, True),
    ]


def test_create_payload_contains_details_and_operations(form, future_date):
    form.scheduled_date = future_date
    form.notes = "first visit"
    form.add_session("svc-consult")

    payload = form.to_create_payload()
    assert payload.details.scheduled_date == future_date
    assert payload.details.notes == "first visit"
    assert len(payload.operations.new_orders) == 1
    assert "toDelete" not in payload.to_dict()
    with pytest.raises(ValueError):
        form.to_update_payload()
