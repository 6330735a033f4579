"""Availability engine: cache, retry policy and orchestration."""

from facility_slots.engine.cache import TTLCache
from facility_slots.engine.retry import RetryExecutor
from facility_slots.engine.service import SlotService, parse_monday, validate_booking
from facility_slots.errors import (
    InvalidInputError,
    SlotServiceError,
    UpstreamDataError,
    UpstreamError,
    UpstreamTransportError,
)

__all__ = [
    "InvalidInputError",
    "RetryExecutor",
    "SlotService",
    "SlotServiceError",
    "TTLCache",
    "UpstreamDataError",
    "UpstreamError",
    "UpstreamTransportError",
    "create_service_from_settings",
    "parse_monday",
    "validate_booking",
]


def create_service_from_settings() -> SlotService:
    """Create a SlotService wired from application settings."""
    from facility_slots.config import get_settings
    from facility_slots.upstream import create_provider_from_settings

    settings = get_settings()
    provider = create_provider_from_settings()

    return SlotService(
        source=provider,
        sink=provider,
        retry=RetryExecutor(
            retry_count=settings.retry_count,
            initial_delay_seconds=settings.retry_initial_delay_seconds,
        ),
        cache_ttl_seconds=settings.cache_ttl_seconds,
    )
