"""
Caching primitives: TTL and LRU caches, durable mirror, request coalescing.
"""
from .clock import Clock, ManualClock, SystemClock
from .core import CacheEntry, CacheSource
from .ttl import TTLCache, DEFAULT_TTL_SECONDS
from .lru import LRUCache
from .store import KeyValueStore, InMemoryKeyValueStore, SqlKeyValueStore
from .persistent import PersistentCacheBridge, PersistedEntry
from .coalescer import RequestCoalescer
from .sweeper import CacheSweeper

__all__ = [
    # Core types
    "CacheEntry",
    "CacheSource",
    "Clock",
    "ManualClock",
    "SystemClock",
    # Caches
    "TTLCache",
    "DEFAULT_TTL_SECONDS",
    "LRUCache",
    # Persistence
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "SqlKeyValueStore",
    "PersistentCacheBridge",
    "PersistedEntry",
    # Coalescing
    "RequestCoalescer",
    # Maintenance
    "CacheSweeper",
]
