"""FastAPI dependencies."""

from fastapi import HTTPException, Request

from facility_slots.engine import SlotService


def get_slot_service(request: Request) -> SlotService:
    """Return the SlotService built at startup."""
    service = getattr(request.app.state, "slot_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Slot service is not initialized")
    return service
