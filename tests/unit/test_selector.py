"""Unit and property-based tests for weighted origin selection."""

import random
from collections import Counter

import pytest
from hypothesis import given
from hypothesis import strategies as st

from failover_proxy.core.selector import select_origin
from failover_proxy.models import Origin


class FixedRandom:
    """Random source returning preset values and counting draws."""

    def __init__(self, *values: float) -> None:
        self.values = list(values)
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return self.values.pop(0)


class ForbiddenRandom:
    def random(self) -> float:
        raise AssertionError("random source must not be used")


A = Origin(url="https://a", weight=1)
B = Origin(url="https://b", weight=1)
C = Origin(url="https://c", weight=2)


class TestSelectOrigin:
    def test_single_origin_skips_randomness(self):
        assert select_origin([C], rng=ForbiddenRandom()) is C

    def test_empty_pool_rejected(self):
        with pytest.raises(ValueError, match="empty"):
            select_origin([])

    @pytest.mark.parametrize(
        ("draw", "expected"),
        [
            (0.0, A),  # r = 0.0
            (0.24, A),  # r = 0.96
            (0.25, A),  # r = 1.0, lands on A's boundary
            (0.26, B),  # r = 1.04
            (0.5, B),  # r = 2.0, lands on B's boundary
            (0.51, C),  # r = 2.04
            (0.999, C),
        ],
    )
    def test_cumulative_walk(self, draw, expected):
        rng = FixedRandom(draw)
        assert select_origin([A, B, C], rng=rng) is expected
        assert rng.calls == 1

    def test_does_not_mutate_input(self):
        pool = [A, B, C]
        select_origin(pool, rng=FixedRandom(0.7))
        assert pool == [A, B, C]

    def test_accepts_tuple(self):
        assert select_origin((A, B), rng=FixedRandom(0.9)) is B

    def test_distribution_matches_weights(self):
        rng = random.Random(1234)
        trials = 40_000
        counts = Counter(select_origin([A, B, C], rng=rng).url for _ in range(trials))

        assert counts["https://c"] / trials == pytest.approx(0.50, abs=0.015)
        assert counts["https://a"] / trials == pytest.approx(0.25, abs=0.015)
        assert counts["https://b"] / trials == pytest.approx(0.25, abs=0.015)

    def test_position_does_not_bias(self):
        rng = random.Random(99)
        trials = 40_000
        counts = Counter(select_origin([C, A, B], rng=rng).url for _ in range(trials))
        assert counts["https://c"] / trials == pytest.approx(0.50, abs=0.015)

    def test_uses_module_random_by_default(self, monkeypatch):
        monkeypatch.setattr(random, "random", lambda: 0.9)
        assert select_origin([A, B]) is B


weights = st.floats(min_value=0.001, max_value=1000, allow_nan=False, allow_infinity=False)


@st.composite
def pools(draw):
    ws = draw(st.lists(weights, min_size=1, max_size=10))
    return [Origin(url=f"https://o{i}", weight=w) for i, w in enumerate(ws)]


@given(pool=pools(), draw=st.floats(min_value=0, max_value=1, exclude_max=True))
def test_always_returns_member(pool, draw):
    chosen = select_origin(pool, rng=FixedRandom(draw))
    assert chosen in pool


@given(pool=pools(), draw=st.floats(min_value=0, max_value=1, exclude_max=True))
def test_never_mutates_pool(pool, draw):
    snapshot = list(pool)
    select_origin(pool, rng=FixedRandom(draw))
    assert pool == snapshot
