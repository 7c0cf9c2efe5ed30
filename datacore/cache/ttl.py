"""
In-memory cache with lazy, per-entry time-based expiry.

Nothing is purged eagerly: an expired entry is dropped when a read finds it,
or when ``cleanup()`` sweeps the map (see ``CacheSweeper``).
"""
import logging
import re
from typing import Any, Dict, List, Optional, Pattern, Union

from .clock import Clock, SystemClock
from .core import CacheEntry

logger = logging.getLogger("cache.ttl")

DEFAULT_TTL_SECONDS = 300.0  # 5 minutes


class TTLCache:
    """
    Key/value map where each entry carries its own time-to-live.

    Usage:
        cache = TTLCache(default_ttl=60)
        cache.set("users:1", {"id": 1})
        cache.get("users:1")
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the cache.

        Args:
            default_ttl: TTL in seconds used when ``set`` is called without one
            clock: Time source (wall clock by default)
        """
        self._entries: Dict[str, CacheEntry] = {}
        self._default_ttl = float(default_ttl)
        self._clock = clock or SystemClock()

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    @property
    def clock(self) -> Clock:
        return self._clock

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> CacheEntry:
        """Insert or overwrite ``key``; the expiry clock starts now."""
        entry = CacheEntry(
            value=value,
            created_at=self._clock.now(),
            ttl_seconds=self._default_ttl if ttl is None else float(ttl),
        )
        self._entries[key] = entry
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value, or ``default`` if absent or expired."""
        entry = self.get_entry(key)
        if entry is None:
            return default
        return entry.value

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Return the live entry for ``key``, deleting it if it has expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        now = self._clock.now()
        if entry.is_expired(now):
            self._entries.pop(key, None)
            logger.debug(f"Expired on read: {key} [age={entry.age_seconds(now):.1f}s]")
            return None

        return entry

    def put_entry(self, key: str, entry: CacheEntry) -> None:
        """Store an entry as-is, keeping its original timestamp and TTL."""
        self._entries[key] = entry

    def has(self, key: str) -> bool:
        return self.get_entry(key) is not None

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """
        Remove every entry.

        Returns:
            Number of entries cleared
        """
        count = len(self._entries)
        self._entries.clear()
        logger.info(f"Cleared {count} cache entries")
        return count

    def cleanup(self) -> int:
        """
        Remove all expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock.now()
        expired = [k for k, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Swept {len(expired)} expired entries")
        return len(expired)

    def invalidate_pattern(self, pattern: Union[str, Pattern[str]]) -> int:
        """
        Remove all entries whose key matches a regular expression.

        Returns:
            Number of entries invalidated
        """
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        to_delete = [k for k in self._entries if regex.search(k)]
        for key in to_delete:
            del self._entries[key]
        if to_delete:
            logger.info(f"Invalidated {len(to_delete)} entries matching '{regex.pattern}'")
        return len(to_delete)

    def keys(self) -> List[str]:
        """Keys currently held, expired or not."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.has(key)
