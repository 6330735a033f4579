"""Upstream slot service adapters."""

from facility_slots.upstream.base import (
    BookingSink,
    ScheduleSource,
    SlotProvider,
    parse_weekly_schedule,
)
from facility_slots.upstream.client import SlotApiClient
from facility_slots.upstream.mock import MockSlotApiClient

__all__ = [
    "BookingSink",
    "MockSlotApiClient",
    "ScheduleSource",
    "SlotApiClient",
    "SlotProvider",
    "create_provider_from_settings",
    "parse_weekly_schedule",
]


def create_provider_from_settings() -> SlotProvider:
    """Create the configured upstream adapter."""
    from facility_slots.config import get_settings

    settings = get_settings()

    if settings.use_mock_upstream:
        return MockSlotApiClient()

    return SlotApiClient(
        base_url=settings.slot_api_base_url,
        username=settings.slot_api_username,
        password=settings.slot_api_password,
        timeout=settings.slot_api_timeout,
    )
