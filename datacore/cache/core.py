"""
Core cache data structures.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any


class CacheSource(Enum):
    """Where a value handed back by the fetch layer came from."""
    MEMORY = "memory"       # In-memory TTL cache hit
    UPSTREAM = "upstream"   # Produced by the caller's operation


@dataclass(frozen=True)
class CacheEntry:
    """
    A cached value with the timestamp and TTL used for lazy expiry.

    Entries are immutable; a new ``set`` replaces the entry wholesale.
    """
    value: Any
    created_at: float
    ttl_seconds: float

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl_seconds

    def is_expired(self, now: float) -> bool:
        """An entry is a miss strictly after its expiry instant."""
        return now > self.expires_at

    def age_seconds(self, now: float) -> float:
        return now - self.created_at
