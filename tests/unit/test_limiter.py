"""Tests for the concurrency limiter."""

import asyncio

import pytest

from src.net.limiter import ConcurrencyLimiter


class TestConcurrencyLimiter:
    def test_capacity_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="capacity must be >= 1"):
            ConcurrencyLimiter(0)

    async def test_never_exceeds_capacity(self) -> None:
        limiter = ConcurrencyLimiter(3)
        completed: list[int] = []

        async def body(n: int) -> int:
            await asyncio.sleep(0.01)
            completed.append(n)
            return n

        results = await asyncio.gather(
            *(limiter.run(lambda n=n: body(n)) for n in range(10)),
        )

        assert sorted(results) == list(range(10))
        assert len(completed) == 10
        assert limiter.peak == 3
        assert limiter.active == 0

    async def test_slot_released_on_failure(self) -> None:
        limiter = ConcurrencyLimiter(1)

        async def boom() -> None:
            raise RuntimeError("detail failed")

        async def ok() -> str:
            return "done"

        with pytest.raises(RuntimeError):
            await limiter.run(boom)
        assert limiter.active == 0
        assert await asyncio.wait_for(limiter.run(ok), timeout=1) == "done"

    async def test_fifo_admission(self) -> None:
        limiter = ConcurrencyLimiter(1)
        order: list[int] = []

        async def body(n: int) -> None:
            order.append(n)
            await asyncio.sleep(0)

        await asyncio.gather(*(limiter.run(lambda n=n: body(n)) for n in range(5)))
        assert order == [0, 1, 2, 3, 4]
