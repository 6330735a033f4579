"""Pydantic models for the availability engine."""

from datetime import datetime
from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Timestamp formats used on the wire
WIRE_DATETIME_FORMATS = ("%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S")
BOOKING_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
MONDAY_KEY_FORMAT = "%Y%m%d"

T = TypeVar("T")


def parse_wire_datetime(value: str) -> datetime:
    """Parse an upstream timestamp into a naive, facility-local datetime.

    Tries the two known upstream formats first and falls back to ISO-8601.
    Any UTC offset is dropped: busy intervals and slots are compared as
    wall-clock time at the facility.
    """
    for fmt in WIRE_DATETIME_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return datetime.fromisoformat(value).replace(tzinfo=None)


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorKind(str, Enum):
    """Classification of a failed engine call."""

    INVALID_INPUT = "invalid_input"
    UPSTREAM_TRANSPORT = "upstream_transport"
    UPSTREAM_DATA = "upstream_data"
    REJECTED = "rejected"
    UNEXPECTED = "unexpected"


# ---------------------------------------------------------------------------
# Upstream schedule
# ---------------------------------------------------------------------------

class WorkPeriod(CamelModel):
    """A day's working hours, split by a lunch break."""

    start_hour: int = Field(ge=0, le=24)
    lunch_start_hour: int = Field(ge=0, le=24)
    lunch_end_hour: int = Field(ge=0, le=24)
    end_hour: int = Field(ge=0, le=24)

    @model_validator(mode="after")
    def _check_order(self) -> "WorkPeriod":
        if not (
            self.start_hour <= self.lunch_start_hour <= self.lunch_end_hour <= self.end_hour
        ):
            raise ValueError(
                "work period hours must satisfy "
                "start <= lunch start <= lunch end <= end, got "
                f"{self.start_hour}/{self.lunch_start_hour}/"
                f"{self.lunch_end_hour}/{self.end_hour}"
            )
        return self


class BusyInterval(CamelModel):
    """An already-occupied span."""

    start: datetime
    end: datetime

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_timestamp(cls, v):
        if isinstance(v, str):
            return parse_wire_datetime(v)
        return v


class DaySchedule(CamelModel):
    """Work period (None when closed) plus busy intervals for one day."""

    work_period: Optional[WorkPeriod] = None
    busy_slots: list[BusyInterval] = []

    @field_validator("busy_slots", mode="before")
    @classmethod
    def _null_as_empty(cls, v):
        return [] if v is None else v


class Facility(CamelModel):
    facility_id: str = ""
    name: Optional[str] = None
    address: Optional[str] = None


class WeeklySchedule(CamelModel):
    """Raw weekly schedule returned by the schedule source."""

    facility: Optional[Facility] = None
    slot_duration_minutes: int = 0
    monday: Optional[DaySchedule] = None
    tuesday: Optional[DaySchedule] = None
    wednesday: Optional[DaySchedule] = None
    thursday: Optional[DaySchedule] = None
    friday: Optional[DaySchedule] = None
    saturday: Optional[DaySchedule] = None
    sunday: Optional[DaySchedule] = None

    @property
    def facility_id(self) -> str:
        return self.facility.facility_id if self.facility else ""

    def days(self) -> list[tuple[str, Optional[DaySchedule]]]:
        """Return (day name, schedule) pairs in Monday→Sunday order."""
        return [
            ("Monday", self.monday),
            ("Tuesday", self.tuesday),
            ("Wednesday", self.wednesday),
            ("Thursday", self.thursday),
            ("Friday", self.friday),
            ("Saturday", self.saturday),
            ("Sunday", self.sunday),
        ]


# ---------------------------------------------------------------------------
# Engine output
# ---------------------------------------------------------------------------

class AvailableSlot(CamelModel):
    """A bookable slot."""

    start: datetime
    end: datetime
    day_of_week: str
    is_available: bool = True

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_timestamp(cls, v):
        if isinstance(v, str):
            return parse_wire_datetime(v)
        return v

    @field_serializer("start", "end")
    def _format_timestamp(self, value: datetime) -> str:
        return value.strftime(BOOKING_DATETIME_FORMAT)


class WeeklyAvailability(BaseModel):
    """Cached result for one week."""

    facility_id: str
    slots: list[AvailableSlot] = []


# ---------------------------------------------------------------------------
# Booking
# ---------------------------------------------------------------------------

class Patient(CamelModel):
    name: str = ""
    second_name: str = ""
    email: str = ""
    phone: str = ""


class BookingRequest(CamelModel):
    """Request to take a slot.

    ``start`` and ``end`` stay as raw strings so that format errors are
    reported by the service with the offending field names.
    """

    facility_id: str = ""
    start: str = ""
    end: str = ""
    comments: str = ""
    patient: Optional[Patient] = None


class BookingOutcome(BaseModel):
    """What the booking sink reported."""

    success: bool
    message: str = ""


class ApiResponse(CamelModel, Generic[T]):
    """Structured result returned by every public engine operation."""

    success: bool
    message: str = ""
    facility_id: str = ""
    data: Optional[T] = None
    errors: Optional[list[str]] = None
    error_type: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, data: T, message: str = "Operation completed successfully", facility_id: str = ""):
        return cls(success=True, message=message, facility_id=facility_id, data=data)

    @classmethod
    def fail(
        cls,
        message: str,
        errors: Optional[list[str]] = None,
        error_type: ErrorKind = ErrorKind.UNEXPECTED,
    ):
        return cls(success=False, message=message, errors=errors, error_type=error_type)
