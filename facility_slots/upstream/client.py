"""HTTP client for the upstream slot service."""

import logging
from datetime import date
from typing import Optional

import httpx

from facility_slots.errors import UpstreamTransportError
from facility_slots.scheduling.models import (
    MONDAY_KEY_FORMAT,
    BookingOutcome,
    BookingRequest,
    WeeklySchedule,
)
from facility_slots.upstream.base import SlotProvider, parse_weekly_schedule

logger = logging.getLogger(__name__)


class SlotApiClient(SlotProvider):
    """Schedule source and booking sink backed by the slot service REST API."""

    def __init__(
        self,
        base_url: str,
        username: str = "",
        password: str = "",
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the slot service client.

        Args:
            base_url: Service root, e.g. https://host/api/availability
            username: HTTP Basic username
            password: HTTP Basic password
            timeout: Request timeout in seconds
            transport: Optional transport override (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self._client = httpx.AsyncClient(
            auth=httpx.BasicAuth(username, password),
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    async def fetch_week(self, monday: date) -> WeeklySchedule:
        """GET /GetWeeklyAvailability/{yyyyMMdd}."""
        url = f"{self.base_url}/GetWeeklyAvailability/{monday.strftime(MONDAY_KEY_FORMAT)}"

        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            logger.error(f"Slot service connection error: {e}")
            raise UpstreamTransportError(f"Failed to reach slot service at {self.base_url}: {e}") from e

        if not response.is_success:
            raise UpstreamTransportError(
                f"Slot service error: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        return parse_weekly_schedule(response.text)

    async def take_slot(self, request: BookingRequest) -> BookingOutcome:
        """POST /TakeSlot. Success is derived from the HTTP status."""
        payload = request.model_dump(by_alias=True)

        try:
            response = await self._client.post(f"{self.base_url}/TakeSlot", json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Slot service connection error: {e}")
            raise UpstreamTransportError(f"Failed to reach slot service at {self.base_url}: {e}") from e

        if not response.is_success:
            logger.info(f"Slot service rejected booking: {response.status_code} - {response.text}")

        return BookingOutcome(success=response.is_success, message=response.text)

    async def aclose(self) -> None:
        await self._client.aclose()
