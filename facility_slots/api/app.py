"""FastAPI application for Facility Slots."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from facility_slots import __version__
from facility_slots.api.middleware import APIKeyMiddleware, RequestLoggingMiddleware
from facility_slots.api.routes import health, slots
from facility_slots.config import get_settings
from facility_slots.scheduling.models import ApiResponse, ErrorKind

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the slot service on startup and close the upstream on shutdown."""
    logger.info("Starting Facility Slots API")

    settings = get_settings()

    from facility_slots.engine import create_service_from_settings

    service = create_service_from_settings()
    app.state.slot_service = service

    if settings.use_mock_upstream:
        logger.warning("Using the in-process mock upstream")
    elif not settings.has_upstream_credentials:
        logger.warning("Slot service credentials are not configured")

    logger.info("Facility Slots API started successfully")

    yield

    logger.info("Shutting down Facility Slots API")
    await service.source.aclose()


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return body and parameter validation failures as a 400 ApiResponse."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())[1:]) or "body"
        errors.append(f"{field}: {error.get('msg', 'invalid value')}")

    logger.warning(f"Invalid request to {request.url.path}: {errors}")
    body = ApiResponse.fail("Invalid request", errors, ErrorKind.INVALID_INPUT)
    return JSONResponse(
        status_code=400,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Facility Slots API",
        description="Weekly appointment-slot availability and booking",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(RequestLoggingMiddleware)

    if settings.api_key:
        app.add_middleware(APIKeyMiddleware, api_key=settings.api_key)

    app.include_router(health.router, tags=["health"])
    app.include_router(slots.router, prefix="/api/v1", tags=["slots"])

    app.add_exception_handler(RequestValidationError, request_validation_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        body = ApiResponse.fail(
            "An error occurred processing your request",
            [str(exc)] if settings.debug_mode else None,
            ErrorKind.UNEXPECTED,
        )
        return JSONResponse(
            status_code=500,
            content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
        )

    return app
