"""HTTP API for Facility Slots."""

from facility_slots.api.app import create_app

__all__ = ["create_app"]
