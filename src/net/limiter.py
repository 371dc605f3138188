"""Concurrency limiter for detail fetches."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConcurrencyLimiter:
    """Runs at most ``capacity`` task bodies at once.

    Waiters are admitted in FIFO order as slots free up. A slot is released
    exactly once when the task body returns or raises.

    Usage::

        limiter = ConcurrencyLimiter(4)
        result = await limiter.run(lambda: fetch(url))
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            msg = f"capacity must be >= 1, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._semaphore = asyncio.Semaphore(capacity)
        self._active = 0
        self._peak = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def active(self) -> int:
        """Task bodies currently executing."""
        return self._active

    @property
    def peak(self) -> int:
        """Highest number of simultaneously executing bodies seen so far."""
        return self._peak

    async def run(self, task: Callable[[], Awaitable[T]]) -> T:
        async with self._semaphore:
            self._active += 1
            self._peak = max(self._peak, self._active)
            try:
                return await task()
            finally:
                self._active -= 1
