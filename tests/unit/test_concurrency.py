"""Unit tests for the fetch-stage concurrency helpers."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, call, patch

import pytest

from hu5events.utils.concurrency import gather_settled, throttled_gather, with_retry


class TestThrottledGather:
    @pytest.mark.asyncio
    async def test_respects_semaphore(self) -> None:
        running = 0
        peak = 0

        async def job(value: int) -> int:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return value

        results = await throttled_gather([job(i) for i in range(6)], asyncio.Semaphore(2))
        assert results == list(range(6))
        assert peak <= 2


class TestGatherSettled:
    @pytest.mark.asyncio
    async def test_failures_are_data(self) -> None:
        async def ok(value: int) -> int:
            return value

        async def boom() -> int:
            raise RuntimeError("boom")

        successes, failures = await gather_settled([ok(1), boom(), ok(3)])
        assert successes == [(0, 1), (2, 3)]
        assert len(failures) == 1
        assert failures[0][0] == 1
        assert isinstance(failures[0][1], RuntimeError)

    @pytest.mark.asyncio
    async def test_empty(self) -> None:
        assert await gather_settled([]) == ([], [])


class TestWithRetry:
    @pytest.mark.asyncio
    async def test_succeeds_after_retry(self) -> None:
        operation = AsyncMock(side_effect=[ValueError("flaky"), "ok"])
        assert await with_retry(operation, max_attempts=2, backoff=0) == "ok"
        assert operation.await_count == 2

    @pytest.mark.asyncio
    async def test_raises_when_budget_spent(self) -> None:
        operation = AsyncMock(side_effect=ValueError("down"))
        with pytest.raises(ValueError, match="down"):
            await with_retry(operation, max_attempts=3, backoff=0)
        assert operation.await_count == 3

    @pytest.mark.asyncio
    async def test_non_retryable_fails_fast(self) -> None:
        operation = AsyncMock(side_effect=KeyError("gone"))
        with pytest.raises(KeyError):
            await with_retry(
                operation,
                max_attempts=5,
                backoff=0,
                should_retry=lambda exc: not isinstance(exc, KeyError),
            )
        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_backoff_grows_linearly(self) -> None:
        operation = AsyncMock(side_effect=ValueError("down"))
        with patch("hu5events.utils.concurrency.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(ValueError):
                await with_retry(operation, max_attempts=3, backoff=0.5)
        assert sleep.await_args_list == [call(0.5), call(1.0)]
