"""
Request coalescing to prevent duplicate upstream calls.

When multiple concurrent requests ask for the same key, only one operation
runs and every requester shares its outcome.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger("cache.coalescer")


@dataclass
class InFlightRequest:
    """Tracks an in-progress operation."""
    task: Optional["asyncio.Task[Any]"] = None
    started_at: float = field(default_factory=time.monotonic)
    waiter_count: int = 1


class RequestCoalescer:
    """
    Ensures concurrent requests for the same key share one operation.

    Pattern:
    - First request for a key starts the operation as a task
    - Subsequent requests for the same key await that task
    - When it settles, all waiters receive the same result or exception
    - The registration is dropped the moment the task settles, so a later
      request starts a fresh operation

    No lock is needed: looking up and registering a key happens without
    yielding to the event loop.

    Usage:
        coalescer = RequestCoalescer()
        result = await coalescer.dedupe("users:1", lambda: load_user(1))
    """

    def __init__(self):
        self._in_flight: Dict[str, InFlightRequest] = {}

    async def dedupe(self, key: str, operation: Callable[[], Awaitable[Any]]) -> Any:
        """
        Either join an existing in-flight operation or start a new one.

        Args:
            key: Unique key for this request
            operation: Zero-argument coroutine function to call if nothing is in flight

        Returns:
            The operation's result (shared among all concurrent callers)

        Raises:
            Exception: Any error from the operation is propagated to every caller
        """
        in_flight = self._in_flight.get(key)
        if in_flight is not None:
            in_flight.waiter_count += 1
            logger.debug(f"Coalescing request for {key} (waiters: {in_flight.waiter_count})")
        else:
            in_flight = self._start(key, operation)
            logger.debug(f"Initiating operation for {key}")

        # Shield so one caller's cancellation never cancels the shared operation
        return await asyncio.shield(in_flight.task)

    def _start(self, key: str, operation: Callable[[], Awaitable[Any]]) -> InFlightRequest:
        # Register first: an eager task factory can finish the task inside create_task
        in_flight = InFlightRequest()
        self._in_flight[key] = in_flight

        async def run() -> Any:
            try:
                return await operation()
            finally:
                # Clean up before waiters resume
                if self._in_flight.get(key) is in_flight:
                    del self._in_flight[key]

        in_flight.task = asyncio.get_running_loop().create_task(run())
        return in_flight

    def is_in_flight(self, key: str) -> bool:
        return key in self._in_flight

    @property
    def active_requests(self) -> int:
        """Number of currently in-flight operations."""
        return len(self._in_flight)

    def get_stats(self) -> Dict[str, Any]:
        """Get coalescer statistics."""
        return {
            "active_requests": len(self._in_flight),
            "active_keys": list(self._in_flight.keys()),
        }
