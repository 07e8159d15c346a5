"""
API tests for the scheduling and appointment endpoints (in-memory backend).
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from clinicflow.api.deps import get_memory_store
from clinicflow.app import app
from clinicflow.core.config import reset_settings
from clinicflow.domain.enums.appointment import AppointmentStatus

from conftest import PATIENT_ID, make_appointment, make_order


@pytest.fixture
def client(monkeypatch, services):
    monkeypatch.setenv("DATABASE_BACKEND", "memory")
    reset_settings()
    store = get_memory_store()
    store.clear()
    store.add_services(services)
    store.add_order(make_order("o1", "svc-lips", 2, created_at=datetime(2024, 1, 1), final_price=380.0))
    store.add_appointment(
        make_appointment("appt-1", [("o1", "svc-lips", 1)], status=AppointmentStatus.ATTENDED)
    )
    with TestClient(app) as test_client:
        yield test_client
    store.clear()
    reset_settings()


def empty_form(**fields):
    return {"patientId": PATIENT_ID, "sessions": [], **fields}


def future():
    return (datetime.now() + timedelta(days=2)).replace(microsecond=0).isoformat()


def test_list_services(client):
    response = client.get("/services")
    assert response.status_code == 200
    names = [s["name"] for s in response.json()["data"]]
    assert names == ["Brows", "Consultation", "Lips"]


def test_list_patient_orders(client):
    response = client.get(f"/patients/{PATIENT_ID}/orders")
    assert response.status_code == 200
    (order,) = response.json()["data"]
    assert order["id"] == "o1"
    assert order["completedSessions"] == 1
    assert order["sessions"][0]["appointmentStatus"] == "attended"


def test_add_session_to_new_package(client):
    response = client.post(
        "/scheduling/sessions/add", json={"form": empty_form(), "serviceId": "svc-brows"}
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["form"]["sessions"] == [
        {
            "serviceId": "svc-brows",
            "sessionNumber": 1,
            "orderId": None,
            "tempPackageId": "temp-svc-brows-0",
            "appointmentServiceId": None,
            "markedForDeletion": False,
        }
    ]
    assert data["form"]["tempPackageCounter"] == 1
    (card,) = data["packages"]
    assert card["packageKey"] == "temp-svc-brows-0"
    assert card["progressLabel"] == "1 of 3"
    assert card["priceEditable"] is True


def test_add_session_to_existing_order_completes_it(client):
    response = client.post(
        "/scheduling/sessions/add",
        json={"form": empty_form(), "serviceId": "svc-lips", "orderId": "o1"},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["form"]["sessions"][0]["sessionNumber"] == 2
    assert data["packages"][0]["isComplete"] is True
    assert data["availablePackages"] == []


def test_add_session_to_unknown_order_is_404(client):
    response = client.post(
        "/scheduling/sessions/add",
        json={"form": empty_form(), "serviceId": "svc-lips", "orderId": "o-missing"},
    )
    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "ORDER_NOT_FOUND"
    assert body["request_id"] == response.headers["X-Request-ID"]


def test_full_simulated_package_is_409(client):
    sessions = [
        {"serviceId": "svc-consult", "sessionNumber": 1, "tempPackageId": "temp-svc-consult-0"}
    ]
    response = client.post(
        "/scheduling/sessions/add",
        json={
            "form": empty_form(sessions=sessions),
            "serviceId": "svc-consult",
            "orderId": "temp-svc-consult-0",
        },
    )
    assert response.status_code == 409
    assert response.json()["error"] == "PACKAGE_UNAVAILABLE"


def test_remove_session(client):
    sessions = [
        {"serviceId": "svc-brows", "sessionNumber": 1, "tempPackageId": "temp-svc-brows-0"},
        {"serviceId": "svc-brows", "sessionNumber": 2, "tempPackageId": "temp-svc-brows-0"},
    ]
    response = client.post(
        "/scheduling/sessions/remove", json={"form": empty_form(sessions=sessions), "index": 0}
    )
    assert response.status_code == 200
    remaining = response.json()["data"]["form"]["sessions"]
    assert [s["sessionNumber"] for s in remaining] == [1]


def test_remove_session_with_bad_index_is_400(client):
    response = client.post("/scheduling/sessions/remove", json={"form": empty_form(), "index": 3})
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_SESSION_INDEX"


def test_malformed_temp_package_id_is_422(client):
    sessions = [{"serviceId": "svc-brows", "sessionNumber": 1, "tempPackageId": "bogus"}]
    response = client.post("/scheduling/packages/preview", json=empty_form(sessions=sessions))
    assert response.status_code == 422
    assert response.json()["error"] == "INVALID_INPUT"


def test_package_price_and_operations(client):
    sessions = [
        {"serviceId": "svc-brows", "sessionNumber": 1, "tempPackageId": "temp-svc-brows-0"}
    ]
    response = client.post(
        "/scheduling/packages/price",
        json={"form": empty_form(sessions=sessions), "packageKey": "temp-svc-brows-0", "price": 240},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["form"]["customPrices"] == {"temp-svc-brows-0": 240.0}
    assert data["packages"][0]["discountPercentage"] == 20.0

    response = client.post("/scheduling/operations", json=data["form"])
    assert response.status_code == 200
    operations = response.json()["data"]
    assert operations["toDelete"] == []
    assert operations["newOrders"] == [
        {
            "serviceId": "svc-brows",
            "totalSessions": 3,
            "tempPackageId": "temp-svc-brows-0",
            "finalPrice": 240.0,
        }
    ]


def test_create_then_edit_appointment(client):
    form = empty_form(scheduledDate=future(), durationMinutes=45)
    form = client.post(
        "/scheduling/sessions/add", json={"form": form, "serviceId": "svc-lips", "orderId": "o1"}
    ).json()["data"]["form"]

    response = client.post("/appointments", json=form)
    assert response.status_code == 201
    created = response.json()["data"]
    assert created["status"] == "reserved"
    assert created["durationMinutes"] == 45
    assert [(s["orderId"], s["sessionNumber"]) for s in created["appointmentServices"]] == [("o1", 2)]

    response = client.get(f"/appointments/{created['id']}/form")
    assert response.status_code == 200
    edit_form = response.json()["data"]["form"]
    assert edit_form["appointmentId"] == created["id"]
    assert edit_form["sessions"][0]["appointmentServiceId"]

    # Drop the session and start a brows package instead
    edit_form = client.post(
        "/scheduling/sessions/remove", json={"form": edit_form, "index": 0}
    ).json()["data"]["form"]
    edit_form = client.post(
        "/scheduling/sessions/add", json={"form": edit_form, "serviceId": "svc-brows"}
    ).json()["data"]["form"]
    edit_form["notes"] = "switched treatment"

    response = client.put(f"/appointments/{created['id']}", json=edit_form)
    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["notes"] == "switched treatment"
    assert [s["serviceId"] for s in updated["appointmentServices"]] == ["svc-brows"]

    assert client.get(f"/appointments/{created['id']}").json()["data"]["id"] == created["id"]


def test_create_with_invalid_form_is_422(client):
    response = client.post("/appointments", json=empty_form())
    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "INVALID_APPOINTMENT"
    assert set(body["details"]["errors"]) >= {"sessions", "scheduled_date"}


def test_create_rejects_an_appointment_id(client):
    response = client.post("/appointments", json=empty_form(appointmentId="appt-1"))
    assert response.status_code == 422


def test_unknown_appointment_is_404(client):
    assert client.get("/appointments/nope").status_code == 404
    assert client.get("/appointments/nope/form").status_code == 404


def brows_sessions(*numbers, temp_package_id="temp-svc-brows-0"):
    return [
        {"serviceId": "svc-brows", "sessionNumber": n, "tempPackageId": temp_package_id}
        for n in numbers
    ]


def order_prices(client):
    orders = client.get(f"/patients/{PATIENT_ID}/orders").json()["data"]
    return {o["id"]: o["finalPrice"] for o in orders}


def test_available_packages_flag_simulated_packages(client):
    response = client.post(
        "/scheduling/packages/preview", json=empty_form(sessions=brows_sessions(1))
    )
    available = response.json()["data"]["availablePackages"]
    assert [(p["packageKey"], p["isSimulated"]) for p in available] == [
        ("existing-o1", False),
        ("temp-svc-brows-0", True),
    ]


def test_gapped_session_numbers_are_renumbered_before_saving(client):
    sessions = brows_sessions(7) + [{"serviceId": "svc-lips", "sessionNumber": 3, "orderId": "o1"}]
    response = client.post("/appointments", json=empty_form(scheduledDate=future(), sessions=sessions))
    assert response.status_code == 201
    rows = response.json()["data"]["appointmentServices"]
    assert [(s["serviceId"], s["sessionNumber"]) for s in rows] == [("svc-brows", 1), ("svc-lips", 2)]


def test_simulated_package_beyond_its_size_is_409(client):
    form = empty_form(scheduledDate=future(), sessions=brows_sessions(1, 2, 3, 4))
    response = client.post("/appointments", json=form)
    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "PACKAGE_UNAVAILABLE"
    assert body["details"]["package_key"] == "temp-svc-brows-0"
    assert list(order_prices(client)) == ["o1"]


def test_existing_order_beyond_its_size_is_409_on_update(client):
    form = empty_form(scheduledDate=future(), sessions=brows_sessions(1))
    created = client.post("/appointments", json=form).json()["data"]
    edit_form = client.get(f"/appointments/{created['id']}/form").json()["data"]["form"]
    edit_form["sessions"] += [
        {"serviceId": "svc-lips", "sessionNumber": 2, "orderId": "o1"},
        {"serviceId": "svc-lips", "sessionNumber": 3, "orderId": "o1"},
    ]

    response = client.put(f"/appointments/{created['id']}", json=edit_form)
    assert response.status_code == 409
    assert response.json()["details"]["package_key"] == "existing-o1"

    stored = client.get(f"/appointments/{created['id']}").json()["data"]
    assert [s["serviceId"] for s in stored["appointmentServices"]] == ["svc-brows"]


def test_session_of_another_service_cannot_join_an_order(client):
    sessions = [{"serviceId": "svc-brows", "sessionNumber": 2, "orderId": "o1"}]
    response = client.post("/scheduling/packages/preview", json=empty_form(sessions=sessions))
    assert response.status_code == 409
    assert response.json()["error"] == "PACKAGE_UNAVAILABLE"


def test_session_without_a_package_starts_a_simulated_one(client):
    sessions = [
        {"serviceId": "svc-brows", "sessionNumber": 1},
        {"serviceId": "svc-brows", "sessionNumber": 2},
    ]
    response = client.post("/scheduling/packages/preview", json=empty_form(sessions=sessions))
    assert response.status_code == 200
    data = response.json()["data"]
    assert [s["tempPackageId"] for s in data["form"]["sessions"]] == ["temp-svc-brows-0"] * 2
    assert data["form"]["tempPackageCounter"] == 1
    assert [card["packageKey"] for card in data["packages"]] == ["temp-svc-brows-0"]

    response = client.post("/appointments", json=empty_form(scheduledDate=future(), sessions=sessions))
    assert response.status_code == 201
    rows = response.json()["data"]["appointmentServices"]
    assert [s["sessionNumber"] for s in rows] == [1, 2]
    assert len({s["orderId"] for s in rows}) == 1


def test_negative_restored_price_is_rejected(client):
    sessions = [{"serviceId": "svc-lips", "sessionNumber": 2, "orderId": "o1"}]
    form = empty_form(scheduledDate=future(), sessions=sessions, customPrices={"existing-o1": -100})
    response = client.post("/appointments", json=form)
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_PRICE"
    assert order_prices(client) == {"o1": 380.0}


def test_prices_of_packages_outside_the_form_are_dropped(client):
    form = empty_form(sessions=brows_sessions(1), customPrices={"existing-o9": 10, "temp-svc-brows-0": 250})
    response = client.post("/scheduling/packages/preview", json=form)
    assert response.status_code == 200
    assert response.json()["data"]["form"]["customPrices"] == {"temp-svc-brows-0": 250.0}
