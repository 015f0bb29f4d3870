"""Tests for the deterministic generator and run-scoped identifiers."""

import pytest

from evolab.prng import PRNG
from evolab.run_context import RunContext


class TestPRNG:
    def test_same_seed_same_stream(self):
        a, b = PRNG(1337), PRNG(1337)
        assert [a.next() for _ in range(100)] == [b.next() for _ in range(100)]

    def test_different_seed_different_stream(self):
        a, b = PRNG(1337), PRNG(1338)
        assert [a.next() for _ in range(10)] != [b.next() for _ in range(10)]

    def test_values_in_unit_interval(self):
        prng = PRNG(7)
        for _ in range(5000):
            value = prng.next()
            assert 0.0 <= value < 1.0

    def test_mean_is_roughly_half(self):
        prng = PRNG(2024)
        values = [prng.next() for _ in range(20000)]
        assert sum(values) / len(values) == pytest.approx(0.5, abs=0.02)

    def test_next_int_bounds(self):
        prng = PRNG(99)
        seen = {prng.next_int(5, 20) for _ in range(5000)}
        assert min(seen) == 5
        assert max(seen) == 19

    def test_set_seed_resets_stream(self):
        prng = PRNG(42)
        first = [prng.next() for _ in range(5)]
        prng.set_seed(42)
        assert [prng.next() for _ in range(5)] == first

    def test_state_replay(self):
        prng = PRNG(3)
        for _ in range(17):
            prng.next()
        saved = prng.get_state()
        expected = [prng.next() for _ in range(5)]

        replay = PRNG(0)
        replay.set_seed(saved)
        assert [replay.next() for _ in range(5)] == expected

    def test_seed_reduced_to_32_bits(self):
        a, b = PRNG(5), PRNG(5 + 2 ** 32)
        assert a.get_state() == b.get_state()
        assert a.next() == b.next()

    def test_negative_seed_is_valid(self):
        prng = PRNG(-1)
        assert 0.0 <= prng.next() < 1.0

    def test_pick_and_bool(self):
        prng = PRNG(11)
        items = ["a", "b", "c"]
        assert {prng.pick(items) for _ in range(200)} == set(items)
        assert {prng.next_bool() for _ in range(200)} == {True, False}


class TestRunContext:
    def test_ids_are_sequential_and_seeded(self):
        ids = RunContext(255)
        assert ids.next_id("agent") == "agent-000000ff-1"
        assert ids.next_id("skill") == "skill-000000ff-2"
        assert ids.id_counter == 2

    def test_roundtrip(self):
        ids = RunContext(10)
        ids.next_id("agent")
        restored = RunContext.from_dict(ids.to_dict())
        assert restored.next_id("x") == ids.next_id("x")
