"""Per-caller sliding-window rate limiting for the slot routes."""

import hashlib
import time
from collections import deque
from typing import Callable, Optional

from fastapi import HTTPException, Request

from facility_slots.api.middleware import extract_api_key


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` per caller in any ``window_seconds`` span.

    Callers are identified by the same API key ``APIKeyMiddleware`` checks
    (Bearer token or ``X-API-Key``), stored as a digest, and by client IP
    when no key is sent. A caller whose window empties is forgotten, and
    idle callers are swept once per window.
    """

    def __init__(
        self,
        max_requests: int = 60,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    def caller_key(self, request: Request) -> str:
        api_key = extract_api_key(request)
        if api_key:
            digest = hashlib.sha256(api_key.encode()).hexdigest()[:16]
            return f"key:{digest}"
        return f"ip:{request.client.host if request.client else 'unknown'}"

    def _prune(self, key: str, now: float) -> Optional[deque[float]]:
        timestamps = self._requests.get(key)
        if timestamps is None:
            return None
        cutoff = now - self.window_seconds
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()
        if not timestamps:
            del self._requests[key]
            return None
        return timestamps

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        for key in list(self._requests):
            self._prune(key, now)

    def tracked_callers(self) -> int:
        return len(self._requests)

    def reset(self) -> None:
        self._requests.clear()

    async def __call__(self, request: Request) -> None:
        key = self.caller_key(request)
        now = self._clock()
        self._sweep(now)
        timestamps = self._prune(key, now)

        if timestamps is not None and len(timestamps) >= self.max_requests:
            retry_after = int(self.window_seconds - (now - timestamps[0])) + 1
            raise HTTPException(
                status_code=429,
                detail=f"Rate limit exceeded. Max {self.max_requests} requests per {self.window_seconds}s.",
                headers={"Retry-After": str(max(retry_after, 1))},
            )

        self._requests.setdefault(key, deque()).append(now)


_limiter: Optional[SlidingWindowRateLimiter] = None


def get_rate_limiter() -> SlidingWindowRateLimiter:
    """Shared limiter configured from settings."""
    global _limiter
    if _limiter is None:
        from facility_slots.config import get_settings

        settings = get_settings()
        _limiter = SlidingWindowRateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    return _limiter


async def rate_limit(request: Request) -> None:
    """FastAPI dependency applying the shared limiter."""
    await get_rate_limiter()(request)
