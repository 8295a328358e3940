"""Bounded-concurrency, rate-limited runner for async work units."""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Any, Awaitable, Callable, Iterable, TypeVar

T = TypeVar("T")

Clock = Callable[[], float]


class RateLimitedQueue:
    """Run coroutines with two caps enforced together.

    - at most ``concurrency`` units in flight
    - at most ``interval_cap`` unit starts in any rolling ``interval`` seconds

    A non-positive ``interval`` or ``interval_cap`` disables the second cap.
    """

    def __init__(
        self,
        *,
        concurrency: int,
        interval: float = 0.0,
        interval_cap: int = 0,
        clock: Clock = time.monotonic,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = concurrency
        self.interval = interval
        self.interval_cap = interval_cap
        self._clock = clock
        self._slots = asyncio.Semaphore(concurrency)
        self._window_lock = asyncio.Lock()
        self._starts: deque[float] = deque()

    @property
    def rate_limited(self) -> bool:
        return self.interval > 0 and self.interval_cap > 0

    async def _wait_for_window(self) -> None:
        if not self.rate_limited:
            return
        async with self._window_lock:
            while True:
                now = self._clock()
                while self._starts and now - self._starts[0] >= self.interval:
                    self._starts.popleft()
                if len(self._starts) < self.interval_cap:
                    self._starts.append(now)
                    return
                await asyncio.sleep(self.interval - (now - self._starts[0]))

    async def run(self, fn: Callable[..., Awaitable[T]], *args: Any) -> T:
        async with self._slots:
            await self._wait_for_window()
            return await fn(*args)

    async def map(self, fn: Callable[[Any], Awaitable[T]], items: Iterable[Any]) -> list[T]:
        """Schedule ``fn(item)`` for every item; results keep input order."""
        return list(await asyncio.gather(*(self.run(fn, item) for item in items)))
