"""Shared test doubles: a midpoint random source and a virtual clock."""

import asyncio
from typing import List, Sequence, Tuple

import pytest

from camcogni_sim.errors import InvalidSampleSize
from camcogni_sim.randomness import RandomSource


class MidpointRandomSource(RandomSource):
    """Always returns the midpoint of the requested bound."""

    def uniform_int(self, min_value, max_value):
        return (min_value + max_value) // 2

    def uniform_float(self, min_value, max_value, decimals=1):
        return round((min_value + max_value) / 2, decimals)

    def sample(self, pool: Sequence, k: int) -> List:
        if k < 0 or k > len(pool):
            raise InvalidSampleSize(k, len(pool))
        return list(pool[:k])


class VirtualClock:
    """Replacement for ``asyncio.sleep`` whose time only moves on ``advance``."""

    def __init__(self):
        self.now = 0.0
        self._sleepers: List[Tuple[float, asyncio.Future]] = []

    @property
    def pending(self) -> int:
        return len(self._sleepers)

    async def sleep(self, seconds: float) -> None:
        future = asyncio.get_running_loop().create_future()
        self._sleepers.append((self.now + seconds, future))
        await future

    async def wait_for_sleepers(self, count: int = 1, max_spins: int = 1000) -> None:
        """Let the loop run until ``count`` coroutines are sleeping."""
        for _ in range(max_spins):
            if len(self._sleepers) >= count:
                return
            await asyncio.sleep(0)
        raise AssertionError(f"Expected {count} sleepers, have {len(self._sleepers)}")

    async def advance(self, seconds: float) -> None:
        self.now += seconds
        due = [(t, f) for t, f in self._sleepers if t <= self.now]
        self._sleepers = [(t, f) for t, f in self._sleepers if t > self.now]
        for _, future in due:
            if not future.done():
                future.set_result(None)
        # Let woken coroutines run
        for _ in range(10):
            await asyncio.sleep(0)


@pytest.fixture
def midpoint_source():
    return MidpointRandomSource()


@pytest.fixture
def clock():
    return VirtualClock()
