"""
Tests for the capacity-bounded LRU cache.
"""
import random

from datacore.cache import LRUCache


def test_lru_evicts_oldest_on_overflow():
    """Test LRUCache(2); set a,b,c -> a evicted"""
    lru = LRUCache(max_size=2)
    lru.set("a", 1)
    lru.set("b", 2)
    lru.set("c", 3)

    assert lru.has("a") is False
    assert lru.has("b") is True
    assert lru.has("c") is True


def test_lru_get_marks_recently_used():
    """Test that a read protects the key from the next eviction"""
    lru = LRUCache(max_size=2)
    lru.set("a", 1)
    lru.set("b", 2)

    assert lru.get("a") == 1

    lru.set("c", 3)

    assert lru.get("a") == 1
    assert lru.get("b") is None
    assert lru.get("c") == 3


def test_lru_overwrite_refreshes_recency():
    """Test that re-setting an existing key moves it to most recent"""
    lru = LRUCache(max_size=2)
    lru.set("a", 1)
    lru.set("b", 2)
    lru.set("a", 10)
    lru.set("c", 3)

    assert lru.keys() == ["a", "c"]
    assert lru.get("a") == 10


def test_lru_has_does_not_touch_recency():
    """Test that membership checks are not uses"""
    lru = LRUCache(max_size=2)
    lru.set("a", 1)
    lru.set("b", 2)

    assert lru.has("a")
    lru.set("c", 3)

    assert not lru.has("a")


def test_lru_size_never_exceeds_max_and_evicts_lru():
    """Test the capacity bound against a reference model over random operations"""
    rng = random.Random(42)
    lru = LRUCache(max_size=5)
    order = []  # least recent first

    for _ in range(500):
        key = f"k{rng.randint(0, 12)}"
        if rng.random() < 0.6:
            lru.set(key, key)
            if key in order:
                order.remove(key)
            order.append(key)
            if len(order) > 5:
                order.pop(0)
        else:
            value = lru.get(key)
            if key in order:
                assert value == key
                order.remove(key)
                order.append(key)
            else:
                assert value is None

        assert len(lru) <= 5
        assert lru.keys() == order


def test_lru_delete_and_clear():
    """Test explicit removal"""
    lru = LRUCache(max_size=3)
    lru.set("a", None)

    assert lru.delete("a") is True
    assert lru.delete("a") is False

    lru.set("b", 2)
    lru.clear()
    assert len(lru) == 0


def test_lru_max_size_clamped_to_one():
    """Test that a non-positive capacity still holds one entry"""
    lru = LRUCache(max_size=0)
    lru.set("a", 1)
    lru.set("b", 2)

    assert lru.max_size == 1
    assert lru.keys() == ["b"]
