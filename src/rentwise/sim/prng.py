# src/rentwise/sim/prng.py
from __future__ import annotations

from typing import Sequence, TypeVar

T = TypeVar("T")

# Park-Miller minimal standard LCG
MULTIPLIER = 16807
INCREMENT = 0
MODULUS = 2_147_483_647  # 2**31 - 1

DEFAULT_SEED = 12345


class ParkMillerRandom:
    """
    Seeded linear congruential generator.

    Same seed => identical sequence on every platform. The simulator's
    reproducibility depends on it, so don't swap in `random.Random`.
    """

    def __init__(self, seed: int = DEFAULT_SEED) -> None:
        self._state = self._normalize(seed)

    @staticmethod
    def _normalize(seed: int) -> int:
        state = int(seed) % MODULUS
        if state == 0:
            # 0 is a fixed point of the recurrence
            raise ValueError("seed must not be a multiple of 2**31 - 1")
        return state

    @property
    def seed(self) -> int:
        """Current internal state."""
        return self._state

    def next(self) -> int:
        self._state = (MULTIPLIER * self._state + INCREMENT) % MODULUS
        return self._state

    def random(self) -> float:
        """Float in [0, 1)."""
        return self.next() / MODULUS

    def randint(self, lo: int, hi: int) -> int:
        """Integer in [lo, hi], both inclusive."""
        if hi < lo:
            raise ValueError("hi must be >= lo")
        return int(self.random() * (hi - lo + 1)) + lo

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise IndexError("cannot choose from an empty sequence")
        return items[self.randint(0, len(items) - 1)]

    def boolean(self, probability: float = 0.5) -> bool:
        return self.random() < probability

    def reset(self, seed: int) -> None:
        self._state = self._normalize(seed)
