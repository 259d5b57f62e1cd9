"""Tests for the concurrency admission gate."""

from __future__ import annotations

import asyncio

import pytest

from mdxai.core.concurrency import ConcurrencyLimiter, gather_limited


def test_gather_limited_bounds_in_flight_work() -> None:
    """It should never admit more than max_concurrent coroutines at once."""

    in_flight = 0
    peak = 0

    async def work(i: int) -> int:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return i * 2

    results = asyncio.run(gather_limited([lambda i=i: work(i) for i in range(6)], max_concurrent=2))

    assert results == [0, 2, 4, 6, 8, 10]
    assert peak == 2


def test_gather_limited_returns_exceptions_in_place() -> None:
    """It should keep order and return exceptions instead of raising them."""

    async def ok() -> str:
        return "ok"

    async def boom() -> str:
        raise ValueError("boom")

    results = asyncio.run(gather_limited([ok, boom, ok], max_concurrent=1))

    assert results[0] == "ok"
    assert isinstance(results[1], ValueError)
    assert results[2] == "ok"


def test_limiter_counts_slots() -> None:
    """It should track running and available slots."""

    async def scenario() -> tuple[int, int, int]:
        limiter = ConcurrencyLimiter(3)
        async with limiter:
            inside = (limiter.running, limiter.available)
        return inside[0], inside[1], limiter.running

    assert asyncio.run(scenario()) == (1, 2, 0)


def test_limiter_rejects_zero() -> None:
    """It should refuse a gate with no slots."""

    with pytest.raises(ValueError):
        ConcurrencyLimiter(0)
