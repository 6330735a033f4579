"""Pytest configuration and fixtures."""

from datetime import date

import pytest

from facility_slots.engine import RetryExecutor, SlotService, TTLCache
from facility_slots.scheduling.models import (
    BookingOutcome,
    BookingRequest,
    Patient,
    WeeklySchedule,
)
from facility_slots.upstream.base import BookingSink, ScheduleSource

MONDAY = date(2025, 4, 21)
MONDAY_KEY = "20250421"


def schedule_payload(
    facility_id: str = "fac-1",
    slot_duration_minutes: int = 60,
    busy: list[dict] | None = None,
) -> dict:
    """A camelCase GetWeeklyAvailability body: Mon-Fri 8-12/13-17, weekend closed."""
    weekday = {
        "workPeriod": {"startHour": 8, "lunchStartHour": 12, "lunchEndHour": 13, "endHour": 17},
        "busySlots": [],
    }
    payload = {
        "facility": {"facilityId": facility_id, "name": "Clinic", "address": "Main St 1"},
        "slotDurationMinutes": slot_duration_minutes,
        "monday": {**weekday, "busySlots": busy or []},
        "tuesday": weekday,
        "wednesday": weekday,
        "thursday": weekday,
        "friday": weekday,
        "saturday": {"workPeriod": None, "busySlots": []},
        "sunday": None,
    }
    return payload


class FakeSource(ScheduleSource):
    """Schedule source that counts calls and can fail a set number of times."""

    def __init__(self, schedule: WeeklySchedule | None = None, failures: list[Exception] | None = None):
        self.schedule = schedule or WeeklySchedule.model_validate(schedule_payload())
        self.failures = list(failures or [])
        self.calls: list[date] = []

    async def fetch_week(self, monday: date) -> WeeklySchedule:
        self.calls.append(monday)
        if self.failures:
            raise self.failures.pop(0)
        return self.schedule


class FakeSink(BookingSink):
    """Booking sink with a scripted outcome."""

    def __init__(self, outcome: BookingOutcome | None = None, failures: list[Exception] | None = None):
        self.outcome = outcome or BookingOutcome(success=True, message="Slot booked")
        self.failures = list(failures or [])
        self.requests: list[BookingRequest] = []

    async def take_slot(self, request: BookingRequest) -> BookingOutcome:
        self.requests.append(request)
        if self.failures:
            raise self.failures.pop(0)
        return self.outcome


class RecordingSleep:
    """Async sleep stand-in that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def retry(sleeper):
    return RetryExecutor(retry_count=2, initial_delay_seconds=2, sleep=sleeper)


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def service(source, sink, retry):
    return SlotService(source=source, sink=sink, retry=retry, cache=TTLCache(default_ttl=300))


@pytest.fixture
def booking_request():
    return BookingRequest(
        facility_id="fac-1",
        start="2025-04-23 09:00:00",
        end="2025-04-23 10:00:00",
        comments="First visit",
        patient=Patient(name="Ana", second_name="Lopez", email="ana@example.com", phone="555-0100"),
    )
