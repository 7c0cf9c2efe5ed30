"""Bounded-capacity cache with least-recently-used eviction.

Recency is tracked by OrderedDict position: reads and writes move a key to the
end, eviction pops from the front. There are no TTL semantics here.
"""
import logging
from collections import OrderedDict
from typing import Any, List

logger = logging.getLogger("cache.lru")

DEFAULT_MAX_SIZE = 100


class LRUCache:
    def __init__(self, max_size: int = DEFAULT_MAX_SIZE):
        self._max_size = max(1, int(max_size))
        self._store: "OrderedDict[str, Any]" = OrderedDict()

    @property
    def max_size(self) -> int:
        return self._max_size

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._store:
            return default

        # Move to end to mark as recently used
        self._store.move_to_end(key, last=True)
        return self._store[key]

    def set(self, key: str, value: Any) -> None:
        self._store[key] = value
        self._store.move_to_end(key, last=True)

        # One insert can overflow by at most one entry
        if len(self._store) > self._max_size:
            evicted, _ = self._store.popitem(last=False)
            logger.debug(f"Evicted least recently used key: {evicted}")

    def has(self, key: str) -> bool:
        # Membership checks do not count as a use
        return key in self._store

    def delete(self, key: str) -> bool:
        if key not in self._store:
            return False
        del self._store[key]
        return True

    def clear(self) -> None:
        self._store.clear()

    def keys(self) -> List[str]:
        """Keys ordered from least to most recently used."""
        return list(self._store)

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: str) -> bool:
        return key in self._store
