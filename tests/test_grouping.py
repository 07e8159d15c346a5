"""
Package grouping tests.
"""

from datetime import datetime

import pytest

from clinicflow.domain.entities.session_entry import ExistingSession, NewSession
from clinicflow.domain.enums.appointment import AppointmentStatus, PackageType
from clinicflow.domain.errors import ServiceNotFoundError
from clinicflow.domain.services.grouping import group_indices, simulate_packages

from conftest import make_order


def test_group_indices_keeps_first_appearance_order():
    entries = [
        NewSession("svc-lips", 1, temp_package_id="temp-svc-lips-0"),
        ExistingSession("svc-brows", "o1", 1, "as-1"),
        NewSession("svc-lips", 2, temp_package_id="temp-svc-lips-0"),
        NewSession("svc-consult", 1),
    ]
    assert group_indices(entries) == {
        "temp-svc-lips-0": [0, 2],
        "existing-o1": [1],
        "new-svc-consult": [3],
    }


def test_single_new_session_forms_a_new_package(services, brows):
    groups = simulate_packages(
        [NewSession("svc-brows", 1, temp_package_id="temp-svc-brows-0")], services
    )
    assert len(groups) == 1
    group = groups[0]
    assert group.id == "temp-svc-brows-0"
    assert group.type == PackageType.NEW
    assert group.total_sessions == brows.default_sessions
    assert group.final_price == brows.base_price
    assert group.has_new_sessions
    assert not group.is_complete


def test_existing_packages_sort_first_by_purchase_date(services):
    older = make_order("o-old", "svc-lips", 2, created_at=datetime(2024, 1, 1))
    newer = make_order("o-new", "svc-brows", 3, created_at=datetime(2024, 6, 1))
    entries = [
        NewSession("svc-consult", 1, temp_package_id="temp-svc-consult-0"),
        NewSession("svc-brows", 1, order_id="o-new"),
        NewSession("svc-lips", 1, order_id="o-old"),
        NewSession("svc-brows", 1, temp_package_id="temp-svc-brows-1"),
    ]
    groups = simulate_packages(entries, services, [older, newer])
    assert [g.id for g in groups] == [
        "existing-o-old",
        "existing-o-new",
        "temp-svc-brows-1",
        "temp-svc-consult-0",
    ]


def test_sessions_are_ordered_by_number_with_original_index(services):
    entries = [
        NewSession("svc-brows", 3, temp_package_id="temp-svc-brows-0"),
        NewSession("svc-brows", 1, temp_package_id="temp-svc-brows-0"),
        NewSession("svc-brows", 2, temp_package_id="temp-svc-brows-0"),
    ]
    (group,) = simulate_packages(entries, services)
    assert [s.session_number for s in group.sessions] == [1, 2, 3]
    assert [s.original_index for s in group.sessions] == [1, 2, 0]
    assert group.is_complete


def test_existing_group_reports_order_state(services):
    order = make_order(
        "o1",
        "svc-brows",
        3,
        final_price=250.0,
        sessions=[
            ("appt-1", 1, AppointmentStatus.ATTENDED),
            ("appt-2", 2, AppointmentStatus.RESERVED),
        ],
    )
    entries = [NewSession("svc-brows", 3, order_id="o1")]
    (group,) = simulate_packages(entries, services, [order], current_appointment_id="appt-3")
    assert group.type == PackageType.EXISTING
    assert group.order_id == "o1"
    assert group.final_price == 250.0
    assert group.completed_sessions == 1
    assert group.has_pending_reservations
    assert group.is_complete


def test_pending_reservation_of_the_edited_appointment_is_ignored(services):
    order = make_order("o1", "svc-brows", 3, sessions=[("appt-1", 1, AppointmentStatus.RESERVED)])
    entries = [ExistingSession("svc-brows", "o1", 1, "appt-1-o1-1")]
    (group,) = simulate_packages(entries, services, [order], current_appointment_id="appt-1")
    assert not group.has_pending_reservations


def test_custom_price_wins(services):
    entries = [NewSession("svc-brows", 1, temp_package_id="temp-svc-brows-0")]
    (group,) = simulate_packages(entries, services, custom_prices={"temp-svc-brows-0": 199.0})
    assert group.final_price == 199.0


def test_simulation_is_idempotent(services):
    order = make_order("o1", "svc-lips", 2)
    entries = [
        NewSession("svc-lips", 1, order_id="o1"),
        NewSession("svc-brows", 1, temp_package_id="temp-svc-brows-0"),
    ]
    assert simulate_packages(entries, services, [order]) == simulate_packages(entries, services, [order])


def test_unknown_service_raises(services):
    with pytest.raises(ServiceNotFoundError):
        simulate_packages([NewSession("svc-missing", 1)], services)
