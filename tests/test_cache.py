"""Tests for the LRU cache and key encodings."""

import datetime as dt

import pytest

from street_alignment.cache import LRUCache, bounds_key, optimal_day_key, score_key, solar_key
from street_alignment.models import Bounds


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestLRUCache:
    def test_round_trip(self):
        cache = LRUCache(max_size=2, max_age=60)
        value = {"segments": [1, 2, 3]}
        cache.set("a", value)
        assert cache.get("a") is value
        assert "a" in cache

    def test_missing_key_returns_default(self):
        cache = LRUCache()
        assert cache.get("nope") is None
        assert cache.get("nope", default=[]) == []

    def test_evicts_least_recently_used(self):
        cache = LRUCache(max_size=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")  # refresh a, leaving b as least recently used
        cache.set("c", 3)
        assert "b" not in cache
        assert cache.get("a") == 1
        assert cache.get("c") == 3
        assert len(cache) == 2

    def test_overwrite_does_not_evict(self):
        cache = LRUCache(max_size=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)
        assert cache.get("a") == 10
        assert cache.get("b") == 2

    def test_expiry(self):
        clock = FakeClock()
        cache = LRUCache(max_size=5, max_age=10, clock=clock)
        cache.set("a", 1)
        clock.now = 10
        assert cache.has("a")
        clock.now = 10.5
        assert not cache.has("a")
        assert cache.get("a") is None
        # Stale entries remain available for explicit fallback
        assert cache.peek("a") == 1

    def test_explicit_max_age_overrides_default(self):
        clock = FakeClock()
        cache = LRUCache(max_age=None, clock=clock)
        cache.set("a", 1)
        clock.now = 400
        assert cache.has("a")
        assert not cache.has("a", max_age=300)

    def test_delete_clear_stats(self):
        cache = LRUCache(max_size=3)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.stats() == {"size": 2, "max_size": 3, "keys": ["a", "b"]}
        cache.delete("a")
        cache.delete("missing")
        assert cache.stats()["keys"] == ["b"]
        cache.clear()
        assert len(cache) == 0

    def test_rejects_zero_size(self):
        with pytest.raises(ValueError):
            LRUCache(max_size=0)


class TestKeys:
    def test_bounds_key(self):
        bounds = Bounds(north=43.4812345, south=43.46, east=-80.52, west=-80.5555555)
        assert bounds_key(bounds) == "43.4812,43.4600,-80.5200,-80.5556"

    def test_bounds_key_merges_sub_precision_differences(self):
        a = Bounds(north=1.00001, south=0.0, east=1.0, west=0.0)
        b = Bounds(north=1.00002, south=0.0, east=1.0, west=0.0)
        assert bounds_key(a) == bounds_key(b)

    def test_optimal_day_key(self):
        key = optimal_day_key(90, 43.47299, -80.5395, 2024, True, False)
        assert key == "90.0000_43.472990_-80.539500_2024_true_false"
        assert key != optimal_day_key(90, 43.47299, -80.5395, 2024, False, True)

    def test_score_and_solar_keys(self):
        assert score_key(123.456789, 10.0) == "123.4568_10.0000"
        assert solar_key(dt.date(2024, 6, 21), 51.5, -0.12, True) == "2024-06-21_51.5000_-0.1200_true"
