"""Unit tests for throttled_gather and CancellationToken."""

from __future__ import annotations

import asyncio

import pytest

from emergency_kb.utils.concurrency import CancellationToken, throttled_gather
from emergency_kb.utils.errors import IngestionCancelledError


class TestThrottledGather:
    async def test_preserves_order_and_bounds_concurrency(self) -> None:
        running = 0
        peak = 0

        async def _job(n: int) -> int:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01 * (5 - n))
            running -= 1
            return n

        results = await throttled_gather([_job(n) for n in range(5)], asyncio.Semaphore(2))

        assert results == [0, 1, 2, 3, 4]
        assert peak == 2

    async def test_exceptions_are_returned(self) -> None:
        async def _fail() -> None:
            raise ValueError("nope")

        [outcome] = await throttled_gather([_fail()], asyncio.Semaphore(1))
        assert isinstance(outcome, ValueError)


class TestCancellationToken:
    def test_cancel(self) -> None:
        token = CancellationToken()
        assert not token.is_cancelled
        token.raise_if_cancelled()

        token.cancel()
        assert token.is_cancelled
        with pytest.raises(IngestionCancelledError):
            token.raise_if_cancelled()
