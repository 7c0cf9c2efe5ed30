"""
Exponential-backoff retry around a caller-supplied async operation.

Delays follow ``base_delay * 2**attempt`` (attempt 0 before the first retry)
and are awaited through an injectable sleep, so tests can run them on a fake
timer.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger("fetch.retry")

DEFAULT_MAX_RETRIES = 0
DEFAULT_BASE_DELAY = 1.0  # seconds


class RetryingFetcher:
    """
    Runs an operation, retrying failures with exponential backoff.

    After the last retry fails the original exception is re-raised unchanged;
    normalizing it is the caller's concern.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    ):
        """
        Args:
            max_retries: Default number of retries after the first attempt
            base_delay: Default delay in seconds before the first retry
            sleep: Non-blocking sleep used between attempts
            retry_on: Exception types that trigger a retry
        """
        self.max_retries = max(0, int(max_retries))
        self.base_delay = max(0.0, float(base_delay))
        self._sleep = sleep
        self._retry_on = retry_on

    def _retrying(self, max_retries: int, base_delay: float) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(max_retries + 1),
            wait=wait_exponential(multiplier=base_delay, exp_base=2, min=0),
            retry=retry_if_exception_type(self._retry_on),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def execute(
        self,
        operation: Callable[[], Awaitable[Any]],
        max_retries: Optional[int] = None,
        base_delay: Optional[float] = None,
    ) -> Any:
        """
        Invoke ``operation`` with retries.

        Args:
            operation: Zero-argument coroutine function
            max_retries: Override the default retry count
            base_delay: Override the default base delay

        Returns:
            The first successful result

        Raises:
            Exception: The last error once retries are exhausted
        """
        retries = self.max_retries if max_retries is None else max(0, int(max_retries))
        delay = self.base_delay if base_delay is None else max(0.0, float(base_delay))

        if retries == 0:
            return await operation()

        return await self._retrying(retries, delay)(operation)
