"""Tests for the slot endpoints."""

import pytest
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient

from facility_slots.api.app import create_app, request_validation_handler
from facility_slots.api.middleware import APIKeyMiddleware
from facility_slots.api.rate_limit import SlidingWindowRateLimiter, rate_limit
from facility_slots.api.routes import health, slots
from facility_slots.engine import SlotService
from facility_slots.errors import UpstreamTransportError
from facility_slots.scheduling.models import BookingOutcome
from tests.conftest import MONDAY_KEY, FakeSink, FakeSource

BOOKING_BODY = {
    "facilityId": "fac-1",
    "start": "2025-04-23 09:00:00",
    "end": "2025-04-23 10:00:00",
    "comments": "First visit",
    "patient": {
        "name": "Ana",
        "secondName": "Lopez",
        "email": "ana@example.com",
        "phone": "555-0100",
    },
}


def _build_app(service: SlotService) -> FastAPI:
    app = FastAPI()
    app.include_router(health.router)
    app.include_router(slots.router, prefix="/api/v1")
    app.state.slot_service = service
    app.dependency_overrides[rate_limit] = lambda: None
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    return app


@pytest.fixture
def client(service):
    return TestClient(_build_app(service))


class TestWeeklyAvailabilityEndpoint:
    def test_returns_camel_case_slots(self, client):
        response = client.get(f"/api/v1/slots/week/{MONDAY_KEY}")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["facilityId"] == "fac-1"
        assert len(body["data"]) == 40
        assert body["data"][0] == {
            "start": "2025-04-21 08:00:00",
            "end": "2025-04-21 09:00:00",
            "dayOfWeek": "Monday",
            "isAvailable": True,
        }
        assert "errors" not in body

    def test_invalid_monday_is_500(self, client, source):
        response = client.get("/api/v1/slots/week/20250420")

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["errorType"] == "invalid_input"
        assert "must correspond to a Monday" in body["message"]
        assert source.calls == []

    def test_upstream_failure_is_500(self, sink, retry):
        source = FakeSource(failures=[UpstreamTransportError("down")] * 3)
        client = TestClient(_build_app(SlotService(source=source, sink=sink, retry=retry)))

        response = client.get(f"/api/v1/slots/week/{MONDAY_KEY}")

        assert response.status_code == 500
        assert response.json()["errorType"] == "upstream_transport"
        assert response.json()["message"] == "Error retrieving availability"

    def test_service_missing_is_503(self):
        app = FastAPI()
        app.include_router(slots.router, prefix="/api/v1")
        app.dependency_overrides[rate_limit] = lambda: None

        response = TestClient(app).get(f"/api/v1/slots/week/{MONDAY_KEY}")
        assert response.status_code == 503


class TestBookSlotEndpoint:
    def test_success(self, client, sink):
        response = client.post("/api/v1/slots/book", json=BOOKING_BODY)

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["data"] is True
        assert sink.requests[0].patient.second_name == "Lopez"

    def test_bad_date_is_400(self, client, sink):
        response = client.post("/api/v1/slots/book", json={**BOOKING_BODY, "start": "23/04/2025 09:00"})

        assert response.status_code == 400
        assert response.json()["errorType"] == "invalid_input"
        assert sink.requests == []

    def test_missing_body_is_400(self, client):
        response = client.post("/api/v1/slots/book")

        assert response.status_code == 400
        assert response.json()["message"] == "Booking request is required"

    def test_missing_patient_is_400(self, client):
        body = {k: v for k, v in BOOKING_BODY.items() if k != "patient"}
        response = client.post("/api/v1/slots/book", json=body)

        assert response.status_code == 400
        assert response.json()["message"] == "Patient information is required"

    def test_rejection_is_400(self, source, retry):
        sink = FakeSink(outcome=BookingOutcome(success=False, message="Slot already taken"))
        client = TestClient(_build_app(SlotService(source=source, sink=sink, retry=retry)))

        response = client.post("/api/v1/slots/book", json=BOOKING_BODY)

        assert response.status_code == 400
        body = response.json()
        assert body["errorType"] == "rejected"
        assert body["data"] is False
        assert body["errors"] == ["Slot already taken"]

    def test_transport_failure_is_502(self, source, retry):
        sink = FakeSink(failures=[UpstreamTransportError("timeout")] * 3)
        client = TestClient(_build_app(SlotService(source=source, sink=sink, retry=retry)))

        response = client.post("/api/v1/slots/book", json=BOOKING_BODY)

        assert response.status_code == 502
        assert response.json()["message"] == "Error processing booking"


class TestRateLimit:
    def test_429_after_limit(self, service):
        app = _build_app(service)
        limiter = SlidingWindowRateLimiter(max_requests=2, window_seconds=60)
        app.dependency_overrides[rate_limit] = limiter
        client = TestClient(app)

        assert client.get(f"/api/v1/slots/week/{MONDAY_KEY}").status_code == 200
        assert client.get(f"/api/v1/slots/week/{MONDAY_KEY}").status_code == 200
        response = client.get(f"/api/v1/slots/week/{MONDAY_KEY}")

        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) >= 1

    def test_health_not_limited(self, service):
        app = _build_app(service)
        app.dependency_overrides[rate_limit] = SlidingWindowRateLimiter(max_requests=1)
        client = TestClient(app)

        for _ in range(3):
            assert client.get("/health").status_code == 200


class TestAPIKeyMiddleware:
    @pytest.fixture
    def secured(self, service):
        app = _build_app(service)
        app.add_middleware(APIKeyMiddleware, api_key="letmein")
        return TestClient(app)

    def test_missing_key_is_401(self, secured):
        response = secured.get(f"/api/v1/slots/week/{MONDAY_KEY}")

        assert response.status_code == 401
        assert response.json()["success"] is False

    @pytest.mark.parametrize(
        "headers",
        [{"X-API-Key": "letmein"}, {"Authorization": "Bearer letmein"}],
    )
    def test_valid_key(self, secured, headers):
        response = secured.get(f"/api/v1/slots/week/{MONDAY_KEY}", headers=headers)
        assert response.status_code == 200

    def test_wrong_key(self, secured):
        response = secured.get(f"/api/v1/slots/week/{MONDAY_KEY}", headers={"X-API-Key": "nope"})
        assert response.status_code == 401

    def test_health_is_public(self, secured):
        assert secured.get("/health").status_code == 200


class TestBookingBodyValidation:
    def test_malformed_body_is_400_envelope(self, client, sink):
        body = {**BOOKING_BODY, "start": 20250423, "patient": "Ana"}

        response = client.post("/api/v1/slots/book", json=body)

        assert response.status_code == 400
        payload = response.json()
        assert payload["success"] is False
        assert payload["errorType"] == "invalid_input"
        assert any(error.startswith("start:") for error in payload["errors"])
        assert any(error.startswith("patient:") for error in payload["errors"])
        assert "detail" not in payload
        assert sink.requests == []

    def test_factory_app_returns_400_envelope(self, service):
        app = create_app()
        app.state.slot_service = service
        app.dependency_overrides[rate_limit] = lambda: None

        response = TestClient(app).post("/api/v1/slots/book", json={**BOOKING_BODY, "patient": "Ana"})

        assert response.status_code == 400
        assert response.json()["errorType"] == "invalid_input"
        assert response.json()["errors"][0].startswith("patient:")


class TestRateLimitPerCaller:
    def test_bearer_keys_from_one_ip_have_separate_limits(self, service):
        app = _build_app(service)
        limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60)
        app.dependency_overrides[rate_limit] = limiter
        client = TestClient(app)
        url = f"/api/v1/slots/week/{MONDAY_KEY}"

        alice = client.get(url, headers={"Authorization": "Bearer alice"})
        bob = client.get(url, headers={"Authorization": "Bearer bob"})
        alice_again = client.get(url, headers={"Authorization": "Bearer alice"})

        assert alice.status_code == 200
        assert bob.status_code == 200
        assert alice_again.status_code == 429
        assert limiter.tracked_callers() == 2

    def test_bearer_and_header_key_share_a_bucket(self, service):
        app = _build_app(service)
        app.dependency_overrides[rate_limit] = SlidingWindowRateLimiter(max_requests=1)
        client = TestClient(app)
        url = f"/api/v1/slots/week/{MONDAY_KEY}"

        assert client.get(url, headers={"Authorization": "Bearer alice"}).status_code == 200
        assert client.get(url, headers={"X-API-Key": "alice"}).status_code == 429

    def test_idle_callers_are_forgotten(self, service):
        now = [0.0]
        limiter = SlidingWindowRateLimiter(max_requests=5, window_seconds=60, clock=lambda: now[0])
        app = _build_app(service)
        app.dependency_overrides[rate_limit] = limiter
        client = TestClient(app)
        url = f"/api/v1/slots/week/{MONDAY_KEY}"

        for name in ("a", "b", "c"):
            client.get(url, headers={"X-API-Key": name})
        assert limiter.tracked_callers() == 3

        now[0] = 61.0
        client.get(url, headers={"X-API-Key": "d"})

        assert limiter.tracked_callers() == 1
