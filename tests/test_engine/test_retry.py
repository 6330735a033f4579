"""Tests for the retry executor."""

import logging
from unittest.mock import AsyncMock

import pytest

from facility_slots.engine.retry import RetryExecutor
from facility_slots.errors import (
    InvalidInputError,
    UpstreamDataError,
    UpstreamTransportError,
)


class TestRetryExecutor:
    @pytest.mark.asyncio
    async def test_success_first_try(self, retry, sleeper):
        operation = AsyncMock(return_value="ok")

        assert await retry.run(operation) == "ok"
        operation.assert_awaited_once()
        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self, retry, sleeper):
        operation = AsyncMock(
            side_effect=[UpstreamTransportError("503"), UpstreamTransportError("503"), "ok"]
        )

        assert await retry.run(operation) == "ok"
        assert operation.await_count == 3
        assert sleeper.delays == [2.0, 4.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("retry_count", [0, 1, 3])
    async def test_exhaustion_calls_exactly_one_plus_retry_count(self, sleeper, retry_count):
        executor = RetryExecutor(retry_count=retry_count, initial_delay_seconds=3, sleep=sleeper)
        operation = AsyncMock(side_effect=UpstreamTransportError("down"))

        with pytest.raises(UpstreamTransportError, match="down"):
            await executor.run(operation)

        assert operation.await_count == 1 + retry_count
        assert sleeper.delays == [3.0 ** n for n in range(1, retry_count + 1)]

    @pytest.mark.asyncio
    async def test_reraises_last_error(self, retry):
        operation = AsyncMock(
            side_effect=[ConnectionError("first"), TimeoutError("second"), RuntimeError("last")]
        )

        with pytest.raises(RuntimeError, match="last"):
            await retry.run(operation)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [UpstreamDataError("bad payload"), InvalidInputError("bad input")])
    async def test_non_retryable_errors_raise_immediately(self, retry, sleeper, error):
        operation = AsyncMock(side_effect=error)

        with pytest.raises(type(error)):
            await retry.run(operation)

        operation.assert_awaited_once()
        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_logs_each_retry(self, retry, caplog):
        operation = AsyncMock(side_effect=[UpstreamTransportError("boom"), "ok"])

        with caplog.at_level(logging.WARNING, logger="facility_slots.engine.retry"):
            await retry.run(operation, description="GetWeeklyAvailability/20250421")

        messages = [r.getMessage() for r in caplog.records]
        assert len(messages) == 1
        assert "Retry 1" in messages[0]
        assert "GetWeeklyAvailability/20250421" in messages[0]
        assert "2.00s" in messages[0]
        assert "boom" in messages[0]

    def test_backoff_formula(self):
        executor = RetryExecutor(retry_count=3, initial_delay_seconds=2)
        assert [executor.backoff(n) for n in (1, 2, 3)] == [2.0, 4.0, 8.0]

    def test_rejects_negative_retry_count(self):
        with pytest.raises(ValueError):
            RetryExecutor(retry_count=-1)
