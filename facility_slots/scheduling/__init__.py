"""Slot generation and data model."""

from facility_slots.scheduling.generator import (
    expand_day,
    expand_week,
    generate_slots,
    monday_of,
    week_cache_key,
)
from facility_slots.scheduling.models import (
    ApiResponse,
    AvailableSlot,
    BookingOutcome,
    BookingRequest,
    BusyInterval,
    DaySchedule,
    ErrorKind,
    Facility,
    Patient,
    WeeklyAvailability,
    WeeklySchedule,
    WorkPeriod,
)

__all__ = [
    "ApiResponse",
    "AvailableSlot",
    "BookingOutcome",
    "BookingRequest",
    "BusyInterval",
    "DaySchedule",
    "ErrorKind",
    "Facility",
    "Patient",
    "WeeklyAvailability",
    "WeeklySchedule",
    "WorkPeriod",
    "expand_day",
    "expand_week",
    "generate_slots",
    "monday_of",
    "week_cache_key",
]
