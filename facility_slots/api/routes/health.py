"""Health check endpoints."""

from fastapi import APIRouter, Request

from facility_slots import __version__

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Basic health check."""
    return {
        "status": "healthy",
        "service": "facility-slots",
        "version": __version__,
    }


@router.get("/health/ready")
async def readiness_check(request: Request) -> dict:
    """Readiness check - verifies the slot service is wired up."""
    service = getattr(request.app.state, "slot_service", None)
    if service is None:
        return {
            "status": "not_ready",
            "errors": ["Slot service not initialized"],
        }

    return {
        "status": "ready",
        "upstream": type(service.source).__name__,
        "cached_weeks": len(service.cache),
    }


@router.get("/health/live")
async def liveness_check() -> dict:
    """Liveness check - basic process health."""
    return {"status": "alive"}
