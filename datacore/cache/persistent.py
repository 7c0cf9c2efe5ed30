"""
Write-through mirror of a TTLCache into a durable key-value store.

Memory is always the first tier. Every write is copied to the store under a
namespaced key, and a memory miss falls back to the store, restoring the entry
if the same expiry rule says it is still live. The store is never
authoritative: any failure there is logged and the cache carries on in memory.
"""
import logging
import re
from typing import Any, Dict, List, Optional, Pattern, Set, Union

from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticSerializationError

from datacore.errors import PersistenceError, SerializationError

from .clock import Clock
from .core import CacheEntry
from .store import KeyValueStore
from .ttl import TTLCache

logger = logging.getLogger("cache.persistent")

DEFAULT_NAMESPACE = "cache:"

_MISSING = object()


class PersistedEntry(BaseModel):
    """
    Durable representation of a cache entry.

    Timestamps and TTLs are stored in milliseconds:
        cache:<key> = {"data": ..., "timestamp": 1700000000000, "ttl": 300000}
    """
    data: Any = None
    timestamp: float
    ttl: float

    @classmethod
    def from_entry(cls, entry: CacheEntry) -> "PersistedEntry":
        return cls(
            data=entry.value,
            timestamp=entry.created_at * 1000.0,
            ttl=entry.ttl_seconds * 1000.0,
        )

    def to_entry(self) -> CacheEntry:
        return CacheEntry(
            value=self.data,
            created_at=self.timestamp / 1000.0,
            ttl_seconds=self.ttl / 1000.0,
        )


class PersistentCacheBridge:
    """
    TTLCache front-end that mirrors writes into a KeyValueStore.

    Exposes the same interface as TTLCache, so the fetch layer can use either.
    """

    def __init__(
        self,
        memory: TTLCache,
        store: KeyValueStore,
        namespace: str = DEFAULT_NAMESPACE,
    ):
        """
        Args:
            memory: In-memory tier; owns the clock and default TTL
            store: Durable tier
            namespace: Prefix for every durable key
        """
        self._memory = memory
        self._store = store
        self._namespace = namespace
        # Keys whose durable copy may be out of date after a failed write or remove
        self._untrusted: Set[str] = set()
        self._stats = {
            "rehydrated": 0,
            "persist_failures": 0,
            "serialization_failures": 0,
        }

    @property
    def memory(self) -> TTLCache:
        return self._memory

    @property
    def store(self) -> KeyValueStore:
        return self._store

    @property
    def default_ttl(self) -> float:
        return self._memory.default_ttl

    @property
    def clock(self) -> Clock:
        return self._memory.clock

    def durable_key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    # --- cache interface ---

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> CacheEntry:
        """Store in memory, then mirror to the durable store (best effort)."""
        entry = self._memory.set(key, value, ttl)
        try:
            self._write(key, entry)
        except SerializationError as e:
            self._stats["serialization_failures"] += 1
            logger.warning(f"Not persisting {key}: {e}")
            self._safe_remove(key)
        except PersistenceError as e:
            self._stats["persist_failures"] += 1
            logger.warning(f"Failed to persist {key}: {e}")
            self._untrusted.add(key)
        else:
            self._untrusted.discard(key)
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        """Memory first; on a miss, rehydrate from the durable store if still valid."""
        value = self._memory.get(key, _MISSING)
        if value is not _MISSING:
            return value

        entry = self._rehydrate(key)
        if entry is None:
            return default
        return entry.value

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._memory.get_entry(key)
        if entry is not None:
            return entry
        return self._rehydrate(key)

    def has(self, key: str) -> bool:
        return self.get_entry(key) is not None

    def delete(self, key: str) -> bool:
        removed = self._memory.delete(key)
        self._safe_remove(key)
        return removed

    def clear(self) -> int:
        """Clear memory and every namespaced durable entry."""
        count = self._memory.clear()
        for durable_key in self._durable_keys():
            self._safe_remove_raw(durable_key)
        return count

    def cleanup(self) -> int:
        """Sweep expired entries from memory; durable entries expire lazily on read."""
        return self._memory.cleanup()

    def invalidate_pattern(self, pattern: Union[str, Pattern[str]]) -> int:
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        count = self._memory.invalidate_pattern(regex)
        for durable_key in self._durable_keys():
            if regex.search(durable_key[len(self._namespace):]):
                self._safe_remove_raw(durable_key)
        return count

    def keys(self) -> List[str]:
        return self._memory.keys()

    def __len__(self) -> int:
        return len(self._memory)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def get_stats(self) -> Dict[str, Any]:
        """Get memory/durable sizes and failure counters."""
        durable_keys = self._durable_keys_or_none()
        return {
            "memory_size": len(self._memory),
            "durable_size": len(durable_keys) if durable_keys is not None else None,
            "namespace": self._namespace,
            **self._stats,
        }

    # --- durable tier ---

    def _rehydrate(self, key: str) -> Optional[CacheEntry]:
        if key in self._untrusted:
            return None

        try:
            entry = self._read(key)
        except PersistenceError as e:
            self._stats["persist_failures"] += 1
            logger.warning(f"Failed to read {key} from durable store: {e}")
            self._safe_remove(key)
            return None

        if entry is None:
            return None

        if entry.is_expired(self._memory.clock.now()):
            logger.debug(f"Durable entry expired: {key}")
            self._safe_remove(key)
            return None

        self._memory.put_entry(key, entry)
        self._stats["rehydrated"] += 1
        logger.debug(f"Rehydrated from durable store: {key}")
        return entry

    def _write(self, key: str, entry: CacheEntry) -> None:
        try:
            payload = PersistedEntry.from_entry(entry).model_dump_json()
        except (PydanticSerializationError, TypeError, ValueError) as e:
            raise SerializationError(f"value for {key} is not serializable: {e}") from e

        try:
            self._store.set(self.durable_key(key), payload)
        except Exception as e:
            raise PersistenceError(str(e)) from e

    def _read(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = self._store.get(self.durable_key(key))
        except Exception as e:
            raise PersistenceError(str(e)) from e

        if raw is None:
            return None

        try:
            return PersistedEntry.model_validate_json(raw).to_entry()
        except ValidationError as e:
            raise PersistenceError(f"corrupt durable entry: {e.error_count()} error(s)") from e

    def _safe_remove(self, key: str) -> None:
        self._safe_remove_raw(self.durable_key(key))

    def _safe_remove_raw(self, durable_key: str) -> None:
        key = durable_key[len(self._namespace):]
        try:
            self._store.remove(durable_key)
        except Exception as e:
            self._stats["persist_failures"] += 1
            self._untrusted.add(key)
            logger.warning(f"Failed to remove {durable_key} from durable store: {e}")
        else:
            self._untrusted.discard(key)

    def _durable_keys(self) -> List[str]:
        return self._durable_keys_or_none() or []

    def _durable_keys_or_none(self) -> Optional[List[str]]:
        try:
            keys = self._store.keys()
        except Exception as e:
            self._stats["persist_failures"] += 1
            logger.warning(f"Failed to list durable keys: {e}")
            return None
        if keys is None:
            return None
        return [k for k in keys if k.startswith(self._namespace)]
