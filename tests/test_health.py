"""
Health endpoint tests.
"""

import pytest
from fastapi.testclient import TestClient

from clinicflow.app import app
from clinicflow.core.config import reset_settings


@pytest.fixture
def client(monkeypatch):
    """Create a test client for the FastAPI app."""
    monkeypatch.setenv("DATABASE_BACKEND", "memory")
    reset_settings()
    with TestClient(app) as test_client:
        yield test_client
    reset_settings()


def test_health_endpoint(client):
    """Test that the /health endpoint returns 200 OK."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert "data" in data
    assert data["data"]["status"] == "healthy"
    assert "timestamp" in data["data"]
    assert "version" in data["data"]
    assert "service" in data["data"]


def test_health_ready_endpoint(client):
    """Test that /health/ready reports the in-memory backend as ready."""
    response = client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["ready"] is True
    assert data["checks"] == {"backend": "memory", "database": "ok"}


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
    assert response.json()["request_id"] == "req-123"
    assert "X-Process-Time" in response.headers


def test_root_endpoint(client):
    """Test that the root endpoint returns API information."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "service" in data
    assert "version" in data
    assert "status" in data
    assert data["status"] == "running"
    assert data["endpoints"]["create_appointment"] == "POST /appointments"
