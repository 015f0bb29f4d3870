"""Deterministic pseudo-random number generator (Mulberry32).

Every random draw in the engine goes through one ``PRNG`` instance so that a
run is fully determined by its seed, configuration and control sequence.
"""

import math
from typing import Sequence, TypeVar

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF
_GOLDEN_GAMMA = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    """32-bit integer multiply, low word only."""
    return (a * b) & _MASK32


class PRNG:
    """Mulberry32 generator on a 32-bit unsigned state."""

    def __init__(self, seed: int) -> None:
        self._state = int(seed) & _MASK32

    def set_seed(self, seed: int) -> None:
        self._state = int(seed) & _MASK32

    def get_state(self) -> int:
        """Internal state, suitable for ``set_seed`` on replay."""
        return self._state

    def next(self) -> float:
        """Next float in [0, 1)."""
        self._state = (self._state + _GOLDEN_GAMMA) & _MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_POW_32

    def next_int(self, min_value: int, max_value: int) -> int:
        """Integer in [min_value, max_value)."""
        return math.floor(self.next() * (max_value - min_value)) + min_value

    def next_bool(self) -> bool:
        return self.next() >= 0.5

    def pick(self, items: Sequence[T]) -> T:
        return items[self.next_int(0, len(items))]
