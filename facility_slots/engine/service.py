"""Availability and booking orchestration.

``SlotService`` is the façade the API layer talks to. It validates input,
serves weekly availability from the cache when it can, falls back to the
schedule source through the retry executor, and invalidates the affected
week after every completed booking attempt. Nothing raised below it
escapes: every call returns an ``ApiResponse``.
"""

import logging
import re
from datetime import date, datetime
from typing import Optional

from facility_slots.engine.cache import TTLCache
from facility_slots.engine.retry import RetryExecutor
from facility_slots.errors import (
    InvalidInputError,
    UpstreamDataError,
    UpstreamTransportError,
)
from facility_slots.scheduling.generator import expand_week, monday_of, week_cache_key
from facility_slots.scheduling.models import (
    BOOKING_DATETIME_FORMAT,
    MONDAY_KEY_FORMAT,
    ApiResponse,
    AvailableSlot,
    BookingOutcome,
    BookingRequest,
    ErrorKind,
    WeeklyAvailability,
    WeeklySchedule,
)
from facility_slots.upstream.base import BookingSink, ScheduleSource

logger = logging.getLogger(__name__)

_MONDAY_PATTERN = re.compile(r"^\d{8}$")

DEFAULT_CACHE_TTL_SECONDS = 300


def parse_monday(value: Optional[str]) -> date:
    """Validate a yyyyMMdd week key and return the Monday it names.

    Raises:
        InvalidInputError: If the value is blank, malformed or not a Monday
    """
    if value is None or not value.strip():
        raise InvalidInputError("Monday date is required")

    if not _MONDAY_PATTERN.match(value):
        raise InvalidInputError(
            f"Invalid date '{value}': expected yyyyMMdd format "
            "and the date must correspond to a Monday"
        )
    try:
        parsed = datetime.strptime(value, MONDAY_KEY_FORMAT).date()
    except ValueError:
        raise InvalidInputError(
            f"Invalid date '{value}': not a calendar date in yyyyMMdd format; "
            "the date must correspond to a Monday"
        )

    if parsed.weekday() != 0:
        raise InvalidInputError(
            f"Invalid date '{value}' is a {parsed.strftime('%A')}: "
            "the date must correspond to a Monday"
        )
    return parsed


def validate_booking(request: Optional[BookingRequest]) -> datetime:
    """Check a booking request and return its parsed start time.

    Raises:
        InvalidInputError: On a missing request, unparseable times,
            an end not after the start, or a missing patient
    """
    if request is None:
        raise InvalidInputError("Booking request is required")

    parsed: dict[str, datetime] = {}
    bad_fields: list[str] = []
    for name in ("start", "end"):
        try:
            parsed[name] = datetime.strptime(getattr(request, name), BOOKING_DATETIME_FORMAT)
        except (TypeError, ValueError):
            bad_fields.append(name)

    if bad_fields:
        raise InvalidInputError(
            f"Invalid date format for {', '.join(bad_fields)}; expected yyyy-MM-dd HH:mm:ss",
            errors=[f"{name}: '{getattr(request, name)}' is not yyyy-MM-dd HH:mm:ss" for name in bad_fields],
        )

    if parsed["end"] <= parsed["start"]:
        raise InvalidInputError("End time must be after Start time")

    if request.patient is None:
        raise InvalidInputError(
            "Patient information is required",
            errors=["The Patient object cannot be null"],
        )
    return parsed["start"]


def _check_schedule(schedule: WeeklySchedule) -> None:
    if not schedule.facility_id.strip():
        raise UpstreamDataError("Facility data is missing or incomplete in the slot service response")
    if schedule.slot_duration_minutes <= 0:
        raise UpstreamDataError(
            f"Slot duration is invalid or not provided: {schedule.slot_duration_minutes}"
        )


class SlotService:
    """Weekly availability and booking over an upstream slot service."""

    def __init__(
        self,
        source: ScheduleSource,
        sink: BookingSink,
        retry: Optional[RetryExecutor] = None,
        cache: Optional[TTLCache[WeeklyAvailability]] = None,
        cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
    ):
        """Initialize the service.

        Args:
            source: Where weekly schedules come from
            sink: Where bookings go
            retry: Retry policy for upstream calls
            cache: Availability cache (a fresh one is created if omitted)
            cache_ttl_seconds: Lifetime of a cached week
        """
        self.source = source
        self.sink = sink
        self.retry = retry or RetryExecutor()
        self.cache_ttl_seconds = cache_ttl_seconds
        self.cache = cache if cache is not None else TTLCache(default_ttl=cache_ttl_seconds)

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    async def get_weekly_availability(self, monday: Optional[str]) -> ApiResponse[list[AvailableSlot]]:
        """Return the bookable slots for the week starting on *monday* (yyyyMMdd)."""
        response_type = ApiResponse[list[AvailableSlot]]

        try:
            monday_date = parse_monday(monday)
        except InvalidInputError as e:
            logger.warning(f"Rejected availability request for {monday!r}: {e}")
            return response_type.fail(str(e), e.errors, ErrorKind.INVALID_INPUT)

        key = week_cache_key(monday)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return self._availability_response(cached, monday)

        try:
            logger.info(f"Fetching availability for week starting {monday}")
            schedule = await self.retry.run(
                lambda: self.source.fetch_week(monday_date),
                description=f"GetWeeklyAvailability/{monday}",
            )
            _check_schedule(schedule)

            result = WeeklyAvailability(
                facility_id=schedule.facility_id,
                slots=expand_week(schedule, monday_date),
            )
            self.cache.set(key, result, ttl=self.cache_ttl_seconds)
            logger.info(f"Retrieved {len(result.slots)} slots for facility {result.facility_id}")
            return self._availability_response(result, monday)

        except UpstreamDataError as e:
            logger.error(f"Invalid schedule data for week starting {monday}: {e}")
            return response_type.fail(
                "Invalid availability data received from upstream",
                [str(e)],
                ErrorKind.UPSTREAM_DATA,
            )
        except UpstreamTransportError as e:
            logger.error(f"Slot service unavailable for week starting {monday}: {e}")
            return response_type.fail(
                "Error retrieving availability",
                [str(e)],
                ErrorKind.UPSTREAM_TRANSPORT,
            )
        except Exception as e:
            logger.exception(f"Error fetching availability for week starting {monday}")
            return response_type.fail(
                "Error retrieving availability",
                [str(e)],
                ErrorKind.UNEXPECTED,
            )

    @staticmethod
    def _availability_response(result: WeeklyAvailability, monday: str) -> ApiResponse[list[AvailableSlot]]:
        return ApiResponse[list[AvailableSlot]].ok(
            list(result.slots),
            message=f"Retrieved {len(result.slots)} slots for week starting {monday}",
            facility_id=result.facility_id,
        )

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    async def book_slot(self, request: Optional[BookingRequest]) -> ApiResponse[bool]:
        """Take a slot and drop the cached availability of its week."""
        try:
            start = validate_booking(request)
        except InvalidInputError as e:
            logger.warning(f"Rejected booking request: {e}")
            return ApiResponse[bool].fail(str(e), e.errors, ErrorKind.INVALID_INPUT)

        logger.info(
            f"Booking slot from {request.start} to {request.end} "
            f"for {request.patient.email or 'unknown patient'}"
        )

        try:
            outcome: BookingOutcome = await self.retry.run(
                lambda: self.sink.take_slot(request),
                description="TakeSlot",
            )
        except UpstreamTransportError as e:
            logger.error(f"Slot service unavailable while booking: {e}")
            return ApiResponse[bool].fail(
                "Error processing booking", [str(e)], ErrorKind.UPSTREAM_TRANSPORT
            )
        except Exception as e:
            logger.exception("Error booking slot")
            return ApiResponse[bool].fail(
                "Error processing booking", [str(e)], ErrorKind.UNEXPECTED
            )

        # The call completed, so upstream state may have changed either way.
        self.invalidate_week(start)

        logger.info(f"Booking result: {outcome.success} - {outcome.message}")
        if outcome.success:
            return ApiResponse[bool].ok(True, message=outcome.message, facility_id=request.facility_id)
        return ApiResponse[bool](
            success=False,
            message=outcome.message,
            facility_id=request.facility_id,
            data=False,
            errors=[outcome.message] if outcome.message else None,
            error_type=ErrorKind.REJECTED,
        )

    def invalidate_week(self, when: date | datetime) -> bool:
        """Drop the cached availability for the week containing *when*."""
        key = week_cache_key(monday_of(when))
        removed = self.cache.remove(key)
        if removed:
            logger.info(f"Invalidated cached availability {key}")
        return removed
