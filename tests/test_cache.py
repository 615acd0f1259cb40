"""Tests for the in-memory cache."""

from datetime import timedelta

from meal_adherence.services.cache import InMemoryCache
from tests.conftest import FixedClock


def test_cache_expires_entries(clock: FixedClock) -> None:
    cache = InMemoryCache(clock=clock)
    cache.set("key", "value", ttl_seconds=60)

    assert cache.get("key") == "value"
    clock.advance(timedelta(seconds=60))
    assert cache.get("key") is None


def test_cache_evicts_least_recently_used(clock: FixedClock) -> None:
    cache = InMemoryCache(clock=clock, max_entries=2)
    cache.set("a", 1, ttl_seconds=60)
    cache.set("b", 2, ttl_seconds=60)
    cache.get("a")

    cache.set("c", 3, ttl_seconds=60)

    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert len(cache) == 2
