"""Bounded-random draws used by every generator.

Nothing in the package calls the module-level ``random`` functions; all
draws go through a ``RandomSource`` so a session can be reproduced from its
seed.
"""

import logging
import random
from typing import List, Optional, Sequence, TypeVar

from faker import Faker

from .errors import InvalidSampleSize

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RandomSource:
    """Interface for bounded-random generation."""

    def uniform_int(self, min_value: int, max_value: int) -> int:
        """Integer in ``[min_value, max_value]`` inclusive."""
        raise NotImplementedError

    def uniform_float(self, min_value: float, max_value: float, decimals: int = 1) -> float:
        """Float in ``[min_value, max_value]`` rounded to ``decimals`` places."""
        raise NotImplementedError

    def sample(self, pool: Sequence[T], k: int) -> List[T]:
        """``k`` distinct elements of ``pool``, in no particular order."""
        raise NotImplementedError

    def choice(self, options: Sequence[T]) -> T:
        """Uniform pick from a non-empty sequence."""
        if not options:
            raise InvalidSampleSize(1, 0)
        return options[self.uniform_int(0, len(options) - 1)]

    def faker(self) -> Faker:
        """Faker instance seeded from this source (for identifiers)."""
        fake = Faker()
        fake.seed_instance(self.uniform_int(0, 2**31 - 1))
        return fake


class SeededRandomSource(RandomSource):
    """RandomSource backed by a private ``random.Random``."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = random.Random(seed)

    def uniform_int(self, min_value: int, max_value: int) -> int:
        if min_value > max_value:
            raise ValueError(f"Empty range [{min_value}, {max_value}]")
        return self._rng.randint(min_value, max_value)

    def uniform_float(self, min_value: float, max_value: float, decimals: int = 1) -> float:
        if min_value > max_value:
            raise ValueError(f"Empty range [{min_value}, {max_value}]")
        value = round(self._rng.uniform(min_value, max_value), decimals)
        # Rounding can step just outside the interval
        return float(max(min_value, min(max_value, value)))

    def sample(self, pool: Sequence[T], k: int) -> List[T]:
        if k < 0 or k > len(pool):
            raise InvalidSampleSize(k, len(pool))
        return self._rng.sample(list(pool), k)
