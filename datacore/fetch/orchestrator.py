"""
Fetch orchestration: cache lookup, request coalescing and retries in one call.

Call order for a fetch:
1. Cache lookup - a hit returns immediately
2. Miss - join or start the coalesced operation for the key
3. The coalesced operation runs the caller's fetch under RetryingFetcher
4. Success is written to the cache (and its durable mirror) before any
   waiter resumes; failures are never cached
"""
import functools
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from datacore.cache.coalescer import RequestCoalescer
from datacore.cache.core import CacheSource
from datacore.errors import FetchError

from .retry import RetryingFetcher

logger = logging.getLogger("fetch.orchestrator")

Operation = Callable[[], Awaitable[Any]]

_MISSING = object()


@dataclass(frozen=True)
class FetchOptions:
    """Per-call fetch behavior."""
    cache: bool = True
    cache_ttl: Optional[float] = None   # seconds; None uses the cache default
    dedupe: bool = True
    retry: int = 0
    retry_delay: float = 1.0            # seconds before the first retry


class DataFetchOrchestrator:
    """
    Composes a TTL cache, a RequestCoalescer and a RetryingFetcher.

    The cache may be a plain TTLCache or a PersistentCacheBridge; both expose
    ``get``, ``set`` and ``delete``.
    """

    def __init__(
        self,
        cache,
        coalescer: Optional[RequestCoalescer] = None,
        fetcher: Optional[RetryingFetcher] = None,
        default_options: Optional[FetchOptions] = None,
    ):
        self._cache = cache
        self._coalescer = coalescer or RequestCoalescer()
        self._fetcher = fetcher or RetryingFetcher()
        self._default_options = default_options or FetchOptions()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "failures": 0,
        }

    @property
    def cache(self):
        return self._cache

    @property
    def coalescer(self) -> RequestCoalescer:
        return self._coalescer

    @property
    def default_options(self) -> FetchOptions:
        return self._default_options

    async def fetch(
        self,
        key: str,
        operation: Operation,
        options: Optional[FetchOptions] = None,
    ) -> Any:
        """
        Fetch ``key`` through cache, coalescer and retries.

        Raises:
            FetchError: The operation failed on every attempt
        """
        value, _ = await self.fetch_with_source(key, operation, options)
        return value

    async def fetch_with_source(
        self,
        key: str,
        operation: Operation,
        options: Optional[FetchOptions] = None,
    ) -> Tuple[Any, CacheSource]:
        """Like ``fetch`` but also returns where the value came from."""
        options = options or self._default_options

        if options.cache:
            cached = self._cache.get(key, _MISSING)
            if cached is not _MISSING:
                logger.debug(f"CACHE HIT: {key}")
                self._stats["hits"] += 1
                return cached, CacheSource.MEMORY

        logger.debug(f"CACHE MISS: {key}")
        self._stats["misses"] += 1

        async def load() -> Any:
            value = await self._fetcher.execute(
                operation,
                max_retries=options.retry,
                base_delay=options.retry_delay,
            )
            if options.cache:
                self._cache.set(key, value, options.cache_ttl)
            return value

        try:
            if options.dedupe:
                value = await self._coalescer.dedupe(key, load)
            else:
                value = await load()
        except Exception as e:
            self._stats["failures"] += 1
            error = FetchError.from_exception(e)
            logger.warning(f"Fetch failed for {key}: {error.message}")
            if error is e:
                raise
            raise error from e

        return value, CacheSource.UPSTREAM

    def invalidate(self, key: str) -> bool:
        """Drop ``key`` from the cache so the next fetch goes upstream."""
        return self._cache.delete(key)

    def resource(
        self,
        key: str,
        operation: Operation,
        options: Optional[FetchOptions] = None,
    ) -> "FetchState":
        """Create a stateful handle exposing data/loading/error/refetch for a UI binding."""
        return FetchState(
            key=key,
            operation=operation,
            options=options or self._default_options,
            orchestrator=self,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get fetch statistics."""
        total = self._stats["hits"] + self._stats["misses"]
        hit_rate = (self._stats["hits"] / total * 100) if total > 0 else 0
        return {
            **self._stats,
            "hit_rate_percent": round(hit_rate, 1),
            "coalescer": self._coalescer.get_stats(),
        }


@dataclass
class FetchState:
    """
    Observable fetch state for one key.

    ``load`` and ``refetch`` never raise fetch failures; they land in
    ``error`` so a view can render a retry affordance.
    """
    key: str
    operation: Operation = field(repr=False)
    options: FetchOptions = field(default_factory=FetchOptions)
    orchestrator: Optional[DataFetchOrchestrator] = field(default=None, repr=False)
    data: Any = None
    loading: bool = False
    error: Optional[FetchError] = None
    source: Optional[CacheSource] = None
    _pending: int = field(default=0, init=False, repr=False, compare=False)

    async def load(self) -> Any:
        """Fetch the key, updating ``data``/``loading``/``error``; returns ``data``."""
        if self.orchestrator is None:
            raise RuntimeError("FetchState is not bound to an orchestrator")

        # loading stays True until every overlapping load has settled
        self._pending += 1
        self.loading = True
        self.error = None
        try:
            self.data, self.source = await self.orchestrator.fetch_with_source(
                self.key, self.operation, self.options
            )
        except FetchError as e:
            self.error = e
        finally:
            self._pending -= 1
            self.loading = self._pending > 0
        return self.data

    async def refetch(self) -> Any:
        """Drop the cached value and fetch again."""
        if self.orchestrator is not None and self.options.cache:
            self.orchestrator.invalidate(self.key)
        return await self.load()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        return {
            "key": self.key,
            "data": self.data,
            "loading": self.loading,
            "error": self.error.to_dict() if self.error else None,
            "source": self.source.value if self.source else None,
        }


def with_cache(
    orchestrator: DataFetchOrchestrator,
    key: Callable[..., str],
    options: Optional[FetchOptions] = None,
    **overrides: Any,
):
    """
    Decorate an async function so calls go through ``orchestrator.fetch``.

    Usage:
        @with_cache(orchestrator, key=lambda user_id: f"users:{user_id}", cache_ttl=60)
        async def load_user(user_id): ...
    """
    base = options or orchestrator.default_options
    effective = replace(base, **overrides) if overrides else base

    def decorator(fn: Callable[..., Awaitable[Any]]):
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            cache_key = key(*args, **kwargs)
            return await orchestrator.fetch(
                cache_key,
                lambda: fn(*args, **kwargs),
                effective,
            )
        return wrapper

    return decorator
