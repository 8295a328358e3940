from __future__ import annotations

import asyncio
import time

import pytest

from sync_confirmations.workflows.queue import RateLimitedQueue


@pytest.mark.asyncio
async def test_queue_never_exceeds_concurrency() -> None:
    queue = RateLimitedQueue(concurrency=2)
    in_flight = 0
    peak = 0

    async def unit(item: int) -> int:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return item * 10

    results = await queue.map(unit, range(6))

    assert results == [0, 10, 20, 30, 40, 50]
    assert peak == 2


@pytest.mark.asyncio
async def test_queue_caps_starts_per_rolling_interval() -> None:
    interval = 0.1
    queue = RateLimitedQueue(concurrency=10, interval=interval, interval_cap=2)
    starts: list[float] = []

    async def unit(_item: int) -> None:
        starts.append(time.monotonic())

    await queue.map(unit, range(5))

    assert len(starts) == 5
    # Any three consecutive starts must span at least one full interval.
    for first, third in zip(starts, starts[2:]):
        assert third - first >= interval * 0.95


@pytest.mark.asyncio
async def test_queue_without_interval_cap_starts_everything_at_once() -> None:
    queue = RateLimitedQueue(concurrency=5, interval=1.0, interval_cap=0)
    assert queue.rate_limited is False

    started = time.monotonic()
    await queue.map(lambda _item: asyncio.sleep(0), range(5))

    assert time.monotonic() - started < 0.5


def test_queue_rejects_zero_concurrency() -> None:
    with pytest.raises(ValueError):
        RateLimitedQueue(concurrency=0)
