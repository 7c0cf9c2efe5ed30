"""
Tests for the in-memory TTL cache: lazy expiry, overwrite and sweeping.
"""
import logging

import pytest

from datacore.cache import CacheEntry, ManualClock, TTLCache


@pytest.fixture
def clock():
    return ManualClock(start=1_000.0)


@pytest.fixture
def cache(clock):
    return TTLCache(default_ttl=10.0, clock=clock)


def test_set_then_get_round_trips(cache):
    """Test that a value set is immediately readable"""
    cache.set("a", {"id": 1})
    assert cache.get("a") == {"id": 1}


def test_get_missing_returns_default(cache):
    """Test that a never-set key is a miss"""
    assert cache.get("nope") is None
    assert cache.get("nope", "fallback") == "fallback"


def test_entry_expires_strictly_after_ttl(cache, clock):
    """Test that the entry is still live at its expiry instant and gone after"""
    cache.set("a", 1)

    clock.advance(10.0)
    assert cache.get("a") == 1

    clock.advance(0.001)
    assert cache.get("a") is None


def test_expired_read_self_heals(cache, clock):
    """Test that reading an expired entry deletes it"""
    cache.set("a", 1)
    clock.advance(11)

    assert len(cache) == 1
    assert cache.get("a") is None
    assert len(cache) == 0


def test_overwrite_resets_clock(clock):
    """Test set("a",1,ttl=100ms); after 150ms miss; set("a",2) then hit"""
    cache = TTLCache(clock=clock)
    cache.set("a", 1, ttl=0.1)

    clock.advance(0.15)
    assert cache.get("a") is None

    cache.set("a", 2)
    assert cache.get("a") == 2


def test_overwrite_before_expiry_extends_lifetime(cache, clock):
    """Test that overwriting restarts the TTL from the new write"""
    cache.set("a", 1)
    clock.advance(8)
    cache.set("a", 2)
    clock.advance(8)

    assert cache.get("a") == 2


def test_per_entry_ttl_overrides_default(cache, clock):
    """Test that an explicit ttl wins over the default"""
    cache.set("short", 1, ttl=1)
    cache.set("long", 2)
    clock.advance(5)

    assert cache.get("short") is None
    assert cache.get("long") == 2


def test_none_is_a_cacheable_value(cache):
    """Test that None can be stored and distinguished from a miss"""
    marker = object()
    cache.set("a", None)
    assert cache.get("a", marker) is None
    assert cache.has("a")


def test_delete_and_clear(cache):
    """Test explicit removal"""
    cache.set("a", 1)
    cache.set("b", 2)

    assert cache.delete("a") is True
    assert cache.delete("a") is False
    assert cache.get("a") is None

    assert cache.clear() == 1
    assert len(cache) == 0


def test_cleanup_removes_only_expired(cache, clock):
    """Test the periodic sweep"""
    cache.set("old", 1, ttl=1)
    cache.set("new", 2, ttl=100)
    clock.advance(5)

    assert cache.cleanup() == 1
    assert cache.keys() == ["new"]
    assert cache.cleanup() == 0


def test_cleanup_on_empty_cache_is_safe(cache):
    """Test that sweeping nothing never raises"""
    assert cache.cleanup() == 0


def test_invalidate_pattern(cache):
    """Test regex invalidation"""
    cache.set("users:1", 1)
    cache.set("users:2", 2)
    cache.set("posts:1", 3)

    assert cache.invalidate_pattern(r"^users:") == 2
    assert cache.keys() == ["posts:1"]


def test_contains_respects_expiry(cache, clock):
    """Test that `in` follows the same expiry rule as get"""
    cache.set("a", 1)
    assert "a" in cache
    clock.advance(20)
    assert "a" not in cache


def test_entry_age_is_measured_from_creation(cache, clock):
    entry = cache.set("a", 1)
    clock.advance(4.5)

    assert entry.age_seconds(clock.now()) == 4.5
    assert CacheEntry(value=1, created_at=10.0, ttl_seconds=5.0).age_seconds(12.0) == 2.0


def test_expired_read_logs_entry_age(cache, clock, caplog):
    """Test that an expired read reports how old the dropped entry was"""
    cache.set("a", 1)
    clock.advance(12.0)

    with caplog.at_level(logging.DEBUG, logger="cache.ttl"):
        assert cache.get("a") is None

    assert "Expired on read: a [age=12.0s]" in caplog.text
