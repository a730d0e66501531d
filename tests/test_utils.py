"""Tests for odds arithmetic and the TTL cache."""

import math

import pytest

from football_insights.utils.cache import TTLCache
from football_insights.utils.odds import (
    ODDS_CAP_SENTINEL,
    combined_odds,
    confidence_to_decimal_odds,
    format_odds,
    implied_probability,
    potential_return,
    probability_to_decimal_odds,
)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class TestDecimalOdds:
    """Probability to bookmaker odds."""

    def test_margin_shortens_fair_price(self):
        assert probability_to_decimal_odds(0.5) == 2.0
        assert probability_to_decimal_odds(0.5, 0.07) == 1.87

    def test_confidence_conversion(self):
        assert confidence_to_decimal_odds(25, 0.07) == 3.74
        assert confidence_to_decimal_odds(95, 0.07) == 1.01

    def test_floor(self):
        assert probability_to_decimal_odds(0.999, 0.2) == 1.01

    def test_zero_probability(self):
        assert probability_to_decimal_odds(0) == 99.0

    def test_implied_probability(self):
        assert implied_probability(2.0) == 0.5
        assert implied_probability(0) == 0.0


class TestAccumulatorMath:
    """Combined odds and returns."""

    def test_combined_odds_product(self):
        assert combined_odds([2.0, 1.5, 3.0]) == pytest.approx(9.0)
        assert combined_odds([]) == 1.0

    def test_overflow_is_infinite_not_error(self):
        assert math.isinf(combined_odds([1e200, 1e200, 1e200]))
        assert math.isinf(potential_return(math.inf, 10))

    def test_potential_return(self):
        assert potential_return(9.0, 10) == 90.0

    def test_format_odds(self):
        assert format_odds(9.0) == "9.00"
        assert format_odds(1234.5, prefix="$") == "$1,234.50"
        assert format_odds(1_000_000.0) == ODDS_CAP_SENTINEL
        assert format_odds(math.inf, prefix="$") == ODDS_CAP_SENTINEL


class TestTTLCache:
    """Expiry and stale fallback."""

    def test_fresh_then_expired(self):
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=300, clock=clock)
        cache.set("default", [1, 2])

        clock.now = 299
        assert cache.get("default") == [1, 2]
        assert cache.is_fresh("default")

        clock.now = 300
        assert cache.get("default") is None
        assert cache.get_stale("default") == [1, 2]

    def test_per_entry_ttl(self):
        clock = FakeClock()
        cache = TTLCache(ttl_seconds=300, clock=clock)
        cache.set("short", "x", ttl_seconds=10)
        clock.now = 11
        assert cache.get("short") is None

    def test_invalidate_and_clear(self):
        cache = TTLCache(ttl_seconds=60)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.invalidate("a")
        assert cache.get_stale("a") is None
        cache.clear()
        assert cache.get("b") is None

    def test_missing_key(self):
        assert TTLCache(ttl_seconds=60).get("nope") is None
