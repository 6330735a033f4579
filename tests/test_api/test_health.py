"""Tests for health endpoints."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from facility_slots.api.routes import health


@pytest.fixture
def mock_app(service):
    """Create a test application with a wired slot service."""
    app = FastAPI()
    app.include_router(health.router)
    app.state.slot_service = service
    return app


@pytest.fixture
def client(mock_app):
    """Create a test client."""
    return TestClient(mock_app)


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["service"] == "facility-slots"

    def test_liveness_check(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_readiness_check_success(self, client):
        """Readiness reports the upstream adapter and cache size."""
        response = client.get("/health/ready")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["upstream"] == "FakeSource"
        assert body["cached_weeks"] == 0

    def test_readiness_counts_cached_weeks(self, client, service):
        service.cache.set("weekly_availability_20250421", object())
        assert client.get("/health/ready").json()["cached_weeks"] == 1

    def test_readiness_check_not_initialized(self):
        app = FastAPI()
        app.include_router(health.router)

        response = TestClient(app).get("/health/ready")

        assert response.json()["status"] == "not_ready"
        assert response.json()["errors"] == ["Slot service not initialized"]
