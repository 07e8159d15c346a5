"""
Randomized add/remove sequences over an edited appointment.

Every step is followed by a stateless round trip, and every reachable state
must keep per-package numbers unique and gap-free around the numbers other
appointments already hold.
"""

import asyncio
import random

import pytest

from clinicflow.adapters.db.memory.repositories import (
    InMemoryAppointmentRepository,
    InMemoryOrderRepository,
    InMemoryServiceCatalogRepository,
)
from clinicflow.adapters.db.memory.store import InMemoryStore
from clinicflow.application.use_cases.load_appointment_form import LoadAppointmentFormUseCase
from clinicflow.application.use_cases.update_appointment import UpdateAppointmentUseCase
from clinicflow.domain.enums.appointment import AppointmentStatus
from clinicflow.domain.services.grouping import group_indices
from clinicflow.domain.services.numbering import next_free_number, package_total_sessions
from clinicflow.domain.value_objects.package_key import PackageKey

from conftest import make_appointment, make_order

STEPS = 25


@pytest.fixture
def store(services):
    store = InMemoryStore()
    store.add_services(services)
    store.add_order(make_order("o1", "svc-brows", 4))
    store.add_order(make_order("o2", "svc-lips", 3))
    store.add_appointment(
        make_appointment("appt-1", [("o1", "svc-brows", 1), ("o1", "svc-brows", 2), ("o2", "svc-lips", 1)])
    )
    store.add_appointment(
        make_appointment("appt-2", [("o2", "svc-lips", 2)], status=AppointmentStatus.ATTENDED)
    )
    return store


@pytest.fixture
def repos(store):
    return (
        InMemoryServiceCatalogRepository(store),
        InMemoryOrderRepository(store),
        InMemoryAppointmentRepository(store),
    )


@pytest.fixture
def load_form(repos):
    return LoadAppointmentFormUseCase(*repos)


def run(coro):
    return asyncio.run(coro)


def lowest_free(held, count):
    numbers = []
    taken = set(held)
    for _ in range(count):
        number = next_free_number(taken)
        numbers.append(number)
        taken.add(number)
    return numbers


def random_step(form, rng):
    if form.sessions and rng.random() < 0.4:
        form.remove_session(rng.randrange(len(form.sessions)))
        return
    choices = [
        (p.service_id, p.order_id or p.temp_package_id) for p in form.available_packages()
    ]
    choices += [(s.id, None) for s in form.services]
    service_id, package = rng.choice(choices)
    form.add_session(service_id, package)


def assert_numbering(form):
    orders = {o.id: o for o in form.patient_orders}
    services = {s.id: s for s in form.services}
    mirrored = {s.appointment_service_id for s in form.sessions if s.appointment_service_id}

    for key, indices in group_indices(form.sessions).items():
        entries = [form.sessions[i] for i in indices]
        order = orders.get(PackageKey(key).order_id)
        held = (
            order.occupied_numbers(exclude_appointment_service_ids=mirrored) if order else set()
        )
        active = [e.session_number for e in entries if e.is_active]
        kept = {e.session_number for e in entries if e.is_active and not e.is_new}
        new = sorted(e.session_number for e in entries if e.is_new)

        assert len(active) == len(set(active)), key
        assert not held & set(active), key
        assert new == lowest_free(held | kept, len(new)), key
        if new:
            assert not any(e.marked_for_deletion for e in entries), key
            total = package_total_sessions(services[entries[0].service_id], order, 1)
            assert new[-1] <= total, key


@pytest.mark.parametrize("seed", range(20))
def test_random_edit_sequences_keep_numbering_consistent(seed, store, repos, load_form):
    rng = random.Random(seed)
    form = run(load_form.execute(appointment_id="appt-1"))

    for _ in range(STEPS):
        random_step(form, rng)
        assert_numbering(form)

        restored = run(
            load_form.restore(
                form.patient_id,
                form.sessions,
                appointment_id=form.appointment_id,
                scheduled_date=form.scheduled_date,
                duration_minutes=form.duration_minutes,
                custom_prices=form.custom_prices,
                temp_package_counter=form.temp_package_counter,
            )
        )
        assert restored.sessions == form.sessions
        form = restored

    if not form.active_sessions:
        return

    run(UpdateAppointmentUseCase(repos[2]).execute(form))
    for order_id in store.orders:
        order = store.hydrate_order(store.orders[order_id])
        numbers = [s.session_number for s in order.non_cancelled_sessions()]
        assert len(numbers) == len(set(numbers)), order_id
        assert max(numbers, default=0) <= order.total_sessions, order_id
