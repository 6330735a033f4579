"""Fixed-count retry with exponential backoff for upstream calls."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_not_exception_type,
    stop_after_attempt,
)

from facility_slots.errors import InvalidInputError, UpstreamDataError

logger = logging.getLogger(__name__)

R = TypeVar("R")

# Retrying cannot fix bad input or a malformed payload.
NON_RETRYABLE = (InvalidInputError, UpstreamDataError)


class RetryExecutor:
    """Runs an idempotent coroutine up to ``1 + retry_count`` times.

    The delay before retry *n* (1-based) is ``initial_delay_seconds ** n``.
    Sleeping goes through an awaitable so only the calling request is
    suspended.
    """

    def __init__(
        self,
        retry_count: int = 3,
        initial_delay_seconds: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if retry_count < 0:
            raise ValueError(f"retry_count must be >= 0, got {retry_count}")
        self.retry_count = retry_count
        self.initial_delay_seconds = initial_delay_seconds
        self._sleep = sleep

    def backoff(self, attempt_number: int) -> float:
        """Delay in seconds after failed attempt *attempt_number*."""
        return float(self.initial_delay_seconds ** attempt_number)

    def _wait(self, retry_state: RetryCallState) -> float:
        return self.backoff(retry_state.attempt_number)

    @staticmethod
    def _log_retry(description: str) -> Callable[[RetryCallState], None]:
        def log(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            delay = getattr(retry_state.next_action, "sleep", 0.0)
            logger.warning(
                f"Retry {retry_state.attempt_number} for {description} "
                f"in {delay:.2f}s due to: {type(exc).__name__}: {exc}"
            )

        return log

    async def run(
        self,
        operation: Callable[[], Awaitable[R]],
        description: str = "upstream call",
    ) -> R:
        """Await *operation*, retrying on failure.

        Raises the last error once all attempts are spent. Errors listed in
        ``NON_RETRYABLE`` are raised straight away.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_count + 1),
            wait=self._wait,
            retry=retry_if_not_exception_type(NON_RETRYABLE),
            before_sleep=self._log_retry(description),
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await operation()
        raise AssertionError("unreachable: tenacity re-raises on exhaustion")
