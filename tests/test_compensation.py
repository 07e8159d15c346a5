"""
Deletion, compensation and renumbering tests.
"""

import pytest

from clinicflow.domain.entities.session_entry import ExistingSession, NewSession
from clinicflow.domain.enums.appointment import AppointmentStatus
from clinicflow.domain.errors import InvalidSessionIndexError
from clinicflow.domain.services.compensation import (
    apply_session_compensation,
    handle_remove_session,
    renumber_new_sessions,
)

from conftest import make_order


@pytest.fixture
def booked():
    return [
        ExistingSession("svc-brows", "o1", 1, "as-1"),
        ExistingSession("svc-brows", "o1", 2, "as-2"),
    ]


def test_removing_new_session_drops_it():
    entries = [NewSession("svc-brows", 1, temp_package_id="temp-svc-brows-0")]
    assert handle_remove_session(entries, 0) == []


def test_removing_existing_session_toggles_the_flag(booked):
    marked = handle_remove_session(booked, 1)
    assert marked[1].marked_for_deletion
    restored = handle_remove_session(marked, 1)
    assert restored == booked


@pytest.mark.parametrize("index", [-1, 2])
def test_out_of_range_index_raises(booked, index):
    with pytest.raises(InvalidSessionIndexError):
        handle_remove_session(booked, index)


def test_marked_session_and_new_session_cancel_out(booked):
    entries = [
        booked[0],
        booked[1].toggled(),
        NewSession("svc-brows", 2, order_id="o1"),
    ]
    assert apply_session_compensation(entries) == booked


def test_lowest_marked_number_survives_and_highest_new_is_dropped():
    entries = [
        ExistingSession("svc-brows", "o1", 1, "as-1", marked_for_deletion=True),
        ExistingSession("svc-brows", "o1", 2, "as-2", marked_for_deletion=True),
        NewSession("svc-brows", 3, order_id="o1"),
    ]
    result = apply_session_compensation(entries)
    assert [(type(e).__name__, e.session_number, e.marked_for_deletion) for e in result] == [
        ("ExistingSession", 1, False),
        ("ExistingSession", 2, True),
    ]


def test_compensation_stays_within_one_package(booked):
    entries = [
        booked[0],
        booked[1].toggled(),
        NewSession("svc-brows", 1, temp_package_id="temp-svc-brows-0"),
    ]
    result = apply_session_compensation(entries)
    assert result[1].marked_for_deletion
    assert len(result) == 3


def test_removing_a_new_session_closes_the_gap():
    entries = [
        NewSession("svc-brows", 1, temp_package_id="temp-svc-brows-0"),
        NewSession("svc-brows", 2, temp_package_id="temp-svc-brows-0"),
        NewSession("svc-brows", 3, temp_package_id="temp-svc-brows-0"),
    ]
    result = handle_remove_session(entries, 0)
    assert [e.session_number for e in result] == [1, 2]


def test_renumbering_skips_kept_existing_numbers():
    entries = [
        ExistingSession("svc-brows", "o1", 1, "as-1", marked_for_deletion=True),
        ExistingSession("svc-brows", "o1", 2, "as-2"),
        NewSession("svc-brows", 5, order_id="o1"),
    ]
    # Compensation keeps as-1, so the new session is paired and dropped
    assert len(apply_session_compensation(entries)) == 2
    renumbered = renumber_new_sessions(entries)
    assert renumbered[2].session_number == 1


def test_renumbering_reserves_other_appointments_numbers():
    order = make_order("o1", "svc-brows", 4, sessions=[("appt-other", 1, AppointmentStatus.RESERVED)])
    entries = [NewSession("svc-brows", 3, order_id="o1")]
    assert renumber_new_sessions(entries, [order])[0].session_number == 2


def test_compensation_is_stable(booked):
    entries = [booked[0], booked[1].toggled(), NewSession("svc-brows", 1, temp_package_id="temp-svc-brows-0")]
    once = apply_session_compensation(entries)
    assert apply_session_compensation(once) == once
