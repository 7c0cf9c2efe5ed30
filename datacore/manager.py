"""
Composition root for the caching and fetching layers.

Builds one explicit set of instances (TTL cache, optional durable mirror, LRU
cache, coalescer, retrying fetcher, orchestrator, sweeper) that the
application owns and injects into its consumers.
"""
import logging
from typing import Any, Dict, Optional

from config.settings import Settings

from datacore.cache import (
    Clock,
    InMemoryKeyValueStore,
    KeyValueStore,
    LRUCache,
    PersistentCacheBridge,
    RequestCoalescer,
    SqlKeyValueStore,
    CacheSweeper,
    TTLCache,
)
from datacore.fetch import DataFetchOrchestrator, FetchOptions, RetryingFetcher

logger = logging.getLogger("cache.manager")


class CacheManager:
    """
    Owns the cache stack and its background sweep.

    Usage:
        manager = CacheManager.from_settings(settings)
        manager.start()            # inside a running event loop
        data = await manager.orchestrator.fetch("users", load_users)
        await manager.stop()
    """

    def __init__(
        self,
        memory: TTLCache,
        store: Optional[KeyValueStore] = None,
        namespace: str = "cache:",
        lru_max_size: int = 100,
        sweep_interval_seconds: float = 300.0,
        fetcher: Optional[RetryingFetcher] = None,
        default_options: Optional[FetchOptions] = None,
    ):
        """
        Args:
            memory: In-memory TTL tier
            store: Durable store; None disables the persistent mirror
            namespace: Durable key prefix
            lru_max_size: Capacity of the standalone LRU cache
            sweep_interval_seconds: Interval for the periodic cleanup task
            fetcher: Retry wrapper used by the orchestrator
            default_options: Fetch options used when a call passes none
        """
        self.memory = memory
        self.store = store
        self.cache = PersistentCacheBridge(memory, store, namespace) if store is not None else memory
        self.lru = LRUCache(lru_max_size)
        self.coalescer = RequestCoalescer()
        self.fetcher = fetcher or RetryingFetcher()
        self.orchestrator = DataFetchOrchestrator(
            self.cache,
            coalescer=self.coalescer,
            fetcher=self.fetcher,
            default_options=default_options,
        )
        self.sweeper = CacheSweeper(self.cache, sweep_interval_seconds)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        clock: Optional[Clock] = None,
        store: Optional[KeyValueStore] = None,
    ) -> "CacheManager":
        """Build the stack described by ``settings``; ``store`` overrides the configured one."""
        if store is None and settings.cache_persist_enabled:
            if settings.cache_database_url:
                store = SqlKeyValueStore(settings.cache_database_url)
            else:
                store = InMemoryKeyValueStore()

        return cls(
            memory=TTLCache(settings.cache_default_ttl_seconds, clock=clock),
            store=store if settings.cache_persist_enabled else None,
            namespace=settings.cache_namespace,
            lru_max_size=settings.lru_max_size,
            sweep_interval_seconds=settings.cache_sweep_interval_seconds,
            fetcher=RetryingFetcher(
                max_retries=settings.fetch_retry,
                base_delay=settings.fetch_retry_delay_seconds,
            ),
            default_options=FetchOptions(
                retry=settings.fetch_retry,
                retry_delay=settings.fetch_retry_delay_seconds,
            ),
        )

    @property
    def persistent(self) -> bool:
        return isinstance(self.cache, PersistentCacheBridge)

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        self.sweeper.start()

    async def stop(self) -> None:
        await self.sweeper.stop()

    def invalidate(self, key: str) -> bool:
        removed = self.cache.delete(key)
        if removed:
            logger.info(f"Invalidated cache: {key}")
        return removed

    def clear(self) -> int:
        """
        Clear the TTL cache (and its durable mirror) and the LRU cache.

        Returns:
            Number of TTL entries cleared
        """
        self.lru.clear()
        return self.cache.clear()

    def cleanup(self) -> int:
        return self.sweeper.sweep_once()

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        stats: Dict[str, Any] = {
            "entries": len(self.cache),
            "default_ttl_seconds": self.memory.default_ttl,
            "lru": {
                "entries": len(self.lru),
                "max_size": self.lru.max_size,
            },
            "fetch": self.orchestrator.get_stats(),
            "sweeper": {
                "running": self.sweeper.running,
                "interval_seconds": self.sweeper.interval_seconds,
                "sweeps": self.sweeper.sweeps,
                "removed_total": self.sweeper.removed_total,
            },
            "persistent": self.persistent,
        }
        if isinstance(self.cache, PersistentCacheBridge):
            stats["durable"] = self.cache.get_stats()
        return stats
