"""
Tests for the write-through durable mirror and lazy rehydration.
"""
import json
import logging

import pytest

from datacore.cache import (
    InMemoryKeyValueStore,
    KeyValueStore,
    ManualClock,
    PersistentCacheBridge,
    SqlKeyValueStore,
    TTLCache,
)


class FailingStore(KeyValueStore):
    """Store whose every operation raises, like a full or unavailable disk."""

    def get(self, key):
        raise OSError("store unavailable")

    def set(self, key, value):
        raise OSError("quota exceeded")

    def remove(self, key):
        raise OSError("store unavailable")

    def keys(self):
        raise OSError("store unavailable")


class FlakyRemoveStore(InMemoryKeyValueStore):
    """Store that accepts writes but refuses deletes."""

    def remove(self, key):
        raise OSError("read-only")


@pytest.fixture
def clock():
    return ManualClock(start=1_000.0)


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


def make_bridge(store, clock, ttl=10.0):
    return PersistentCacheBridge(TTLCache(default_ttl=ttl, clock=clock), store)


# =============================================================================
# Write-through
# =============================================================================

def test_set_writes_namespaced_json_entry(store, clock):
    """Test the persisted format cache:<key> = {data, timestamp, ttl}"""
    bridge = make_bridge(store, clock)
    bridge.set("users", [{"id": 1}])

    payload = json.loads(store.get("cache:users"))
    assert payload == {"data": [{"id": 1}], "timestamp": 1_000_000.0, "ttl": 10_000.0}


def test_delete_removes_durable_entry(store, clock):
    """Test that delete is mirrored"""
    bridge = make_bridge(store, clock)
    bridge.set("a", 1)

    assert bridge.delete("a") is True
    assert store.get("cache:a") is None
    assert bridge.get("a") is None


def test_clear_only_touches_namespace(store, clock):
    """Test that clear leaves foreign keys in the store alone"""
    store.set("theme", "dark")
    bridge = make_bridge(store, clock)
    bridge.set("a", 1)
    bridge.set("b", 2)

    assert bridge.clear() == 2
    assert store.keys() == ["theme"]


def test_invalidate_pattern_is_mirrored(store, clock):
    """Test regex invalidation in both tiers"""
    bridge = make_bridge(store, clock)
    bridge.set("users:1", 1)
    bridge.set("posts:1", 2)

    assert bridge.invalidate_pattern("^users:") == 1
    assert store.get("cache:users:1") is None
    assert store.get("cache:posts:1") is not None


# =============================================================================
# Rehydration
# =============================================================================

def test_memory_miss_rehydrates_from_store(store, clock):
    """Test that a fresh memory tier is repopulated from durable data"""
    make_bridge(store, clock).set("a", {"x": 1})

    restarted = make_bridge(store, clock)
    assert len(restarted.memory) == 0

    assert restarted.get("a") == {"x": 1}
    assert len(restarted.memory) == 1
    assert restarted.get_stats()["rehydrated"] == 1


def test_rehydrated_entry_keeps_original_expiry(store, clock):
    """Test that rehydration does not restart the TTL"""
    make_bridge(store, clock).set("a", 1)
    clock.advance(6)

    restarted = make_bridge(store, clock)
    assert restarted.get("a") == 1

    clock.advance(6)
    assert restarted.get("a") is None


def test_expired_durable_entry_is_removed(store, clock):
    """Test that the same expiry rule applies to the durable tier"""
    make_bridge(store, clock).set("a", 1)
    clock.advance(11)

    restarted = make_bridge(store, clock)
    assert restarted.get("a") is None
    assert store.get("cache:a") is None


def test_corrupt_durable_entry_is_a_miss(store, clock, caplog):
    """Test that garbage in the store is logged, dropped and treated as a miss"""
    store.set("cache:a", "{not json")
    bridge = make_bridge(store, clock)

    with caplog.at_level(logging.WARNING, logger="cache.persistent"):
        assert bridge.get("a", "miss") == "miss"

    assert store.get("cache:a") is None
    assert "Failed to read a" in caplog.text


# =============================================================================
# Degradation
# =============================================================================

def test_unserializable_value_stays_in_memory(store, clock, caplog):
    """Test that a value JSON cannot encode is still cached in memory"""
    bridge = make_bridge(store, clock)
    value = object()

    with caplog.at_level(logging.WARNING, logger="cache.persistent"):
        bridge.set("obj", value)

    assert bridge.get("obj") is value
    assert store.get("cache:obj") is None
    assert bridge.get_stats()["serialization_failures"] == 1


def test_failing_store_degrades_to_memory_only(clock, caplog):
    """Test that store I/O errors never reach the caller"""
    bridge = make_bridge(FailingStore(), clock)

    with caplog.at_level(logging.WARNING, logger="cache.persistent"):
        bridge.set("a", 1)
        assert bridge.get("a") == 1
        assert bridge.get("missing") is None
        assert bridge.delete("a") is True
        assert bridge.clear() == 0

    stats = bridge.get_stats()
    assert stats["persist_failures"] > 0
    assert stats["durable_size"] is None


def test_failed_remove_does_not_resurrect_deleted_value(clock):
    """Test that a durable copy that could not be removed is never rehydrated"""
    store = FlakyRemoveStore()
    bridge = make_bridge(store, clock)
    bridge.set("a", 1)

    bridge.delete("a")

    assert store.get("cache:a") is not None
    assert bridge.get("a") is None


def test_successful_write_trusts_key_again(clock):
    """Test that a later good write clears the untrusted mark"""
    store = FlakyRemoveStore()
    bridge = make_bridge(store, clock)
    bridge.set("a", 1)
    bridge.delete("a")

    bridge.set("a", 2)
    bridge.memory.clear()

    assert bridge.get("a") == 2


# =============================================================================
# SQL store
# =============================================================================

def test_sql_store_round_trip():
    """Test the SQLAlchemy-backed store on in-memory SQLite"""
    sql = SqlKeyValueStore("sqlite://")
    sql.set("k", "v1")
    sql.set("k", "v2")

    assert sql.get("k") == "v2"
    assert sql.keys() == ["k"]

    sql.remove("k")
    assert sql.get("k") is None
    sql.dispose()


def test_bridge_over_sql_store_rehydrates(clock):
    """Test write-through and rehydration over the SQL store"""
    sql = SqlKeyValueStore("sqlite://")
    make_bridge(sql, clock).set("report", {"rows": [1, 2, 3]})

    restarted = make_bridge(sql, clock)
    assert restarted.get("report") == {"rows": [1, 2, 3]}
    sql.dispose()
