"""In-process stand-in for the slot service, for local runs and demos."""

import asyncio
import logging
from datetime import date, datetime, timedelta

from facility_slots.scheduling.generator import monday_of
from facility_slots.scheduling.models import (
    BOOKING_DATETIME_FORMAT,
    BookingOutcome,
    BookingRequest,
    BusyInterval,
    DaySchedule,
    Facility,
    WeeklySchedule,
    WorkPeriod,
)
from facility_slots.upstream.base import SlotProvider

logger = logging.getLogger(__name__)

MOCK_FACILITY_ID = "Id1"
MOCK_SLOT_MINUTES = 20
_WEEKDAY_HOURS = WorkPeriod(start_hour=9, lunch_start_hour=13, lunch_end_hour=14, end_hour=17)


class MockSlotApiClient(SlotProvider):
    """Fixed weekday schedule; bookings are remembered and show up as busy."""

    def __init__(self, latency_seconds: float = 0.0):
        self.latency_seconds = latency_seconds
        self._bookings: list[BusyInterval] = []
        self._lock = asyncio.Lock()

    async def _simulate_latency(self) -> None:
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)

    async def fetch_week(self, monday: date) -> WeeklySchedule:
        await self._simulate_latency()

        def day(offset: int) -> DaySchedule:
            day_date = monday + timedelta(days=offset)
            if offset >= 5:
                return DaySchedule(work_period=None)
            busy = [b for b in self._bookings if b.start.date() == day_date]
            return DaySchedule(work_period=_WEEKDAY_HOURS, busy_slots=busy)

        logger.debug(f"Mock schedule for week of {monday}")
        return WeeklySchedule(
            facility=Facility(facility_id=MOCK_FACILITY_ID, name="Mock Facility"),
            slot_duration_minutes=MOCK_SLOT_MINUTES,
            monday=day(0),
            tuesday=day(1),
            wednesday=day(2),
            thursday=day(3),
            friday=day(4),
            saturday=day(5),
            sunday=day(6),
        )

    async def take_slot(self, request: BookingRequest) -> BookingOutcome:
        await self._simulate_latency()

        if request.patient is None or not (
            request.patient.name and request.patient.second_name and request.patient.email
        ):
            return BookingOutcome(
                success=False,
                message="Patient name, second name and email are required",
            )

        try:
            start = datetime.strptime(request.start, BOOKING_DATETIME_FORMAT)
            end = datetime.strptime(request.end, BOOKING_DATETIME_FORMAT)
        except ValueError:
            return BookingOutcome(success=False, message="Invalid slot times")

        async with self._lock:
            if any(b.start < end and b.end > start for b in self._bookings):
                return BookingOutcome(success=False, message="Slot already taken")
            self._bookings.append(BusyInterval(start=start, end=end))

        logger.info(f"Mock booking confirmed for week of {monday_of(start)}")
        return BookingOutcome(success=True, message="Mock booking confirmed")
