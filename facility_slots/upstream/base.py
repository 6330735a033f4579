"""Contracts for the upstream schedule source and booking sink."""

import json
import logging
from abc import ABC, abstractmethod
from datetime import date

from pydantic import ValidationError

from facility_slots.errors import UpstreamDataError
from facility_slots.scheduling.models import BookingOutcome, BookingRequest, WeeklySchedule

logger = logging.getLogger(__name__)


def parse_weekly_schedule(content: str) -> WeeklySchedule:
    """Parse a GetWeeklyAvailability body into a WeeklySchedule.

    Raises:
        UpstreamDataError: If the body is not JSON or does not match the schema
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON from schedule source: {e}")
        raise UpstreamDataError(f"Invalid JSON in schedule response: {e}") from e

    if data is None:
        raise UpstreamDataError("Schedule response body was null")

    try:
        return WeeklySchedule.model_validate(data)
    except ValidationError as e:
        logger.error(f"Schedule response doesn't match schema: {e}")
        raise UpstreamDataError(f"Schedule response doesn't match schema: {e}") from e


class ScheduleSource(ABC):
    """Anything that can return a facility's schedule for a week."""

    @abstractmethod
    async def fetch_week(self, monday: date) -> WeeklySchedule:
        """Fetch the schedule for the week starting on *monday*.

        Raises:
            UpstreamTransportError: On non-2xx responses or network failures
            UpstreamDataError: If the response body is unusable
        """
        pass

    async def aclose(self) -> None:
        """Release any held resources."""
        return None


class BookingSink(ABC):
    """Anything that can take a slot on behalf of a patient."""

    @abstractmethod
    async def take_slot(self, request: BookingRequest) -> BookingOutcome:
        """Submit *request*.

        Business-level rejections come back as ``BookingOutcome(success=False)``;
        only transport failures raise.
        """
        pass


class SlotProvider(ScheduleSource, BookingSink):
    """A single upstream that serves both contracts."""
