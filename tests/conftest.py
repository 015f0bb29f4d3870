import math
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class FakePRNG:
    """Scripted stand-in for ``evolab.prng.PRNG``.

    ``next()`` returns the scripted values in order; ``next_int`` uses the
    same formula as the real generator so scripts can target an index.
    """

    def __init__(self, values):
        self._values = list(values)
        self.calls = 0

    def next(self):
        if not self._values:
            raise AssertionError("FakePRNG ran out of scripted values")
        self.calls += 1
        return self._values.pop(0)

    def next_int(self, min_value, max_value):
        return math.floor(self.next() * (max_value - min_value)) + min_value

    @property
    def remaining(self):
        return len(self._values)


@pytest.fixture
def fake_prng():
    return FakePRNG
