"""Error taxonomy for the availability engine."""

from typing import Optional


class SlotServiceError(Exception):
    """Base exception for engine errors."""

    pass


class InvalidInputError(SlotServiceError):
    """Caller-supplied data is malformed or missing. Never retried."""

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class UpstreamError(SlotServiceError):
    """Base for failures coming from the schedule source or booking sink."""

    pass


class UpstreamTransportError(UpstreamError):
    """Non-2xx response or network failure. Retried."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class UpstreamDataError(UpstreamError):
    """A 2xx response whose payload is unusable. Not retried."""

    pass
