"""
Time sources for cache expiry.

Entries are stamped in seconds since the epoch so that timestamps written to a
durable store stay meaningful across process restarts.
"""
import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Source of the current time in seconds."""

    @abstractmethod
    def now(self) -> float:
        pass


class SystemClock(Clock):
    """Wall-clock time."""

    def now(self) -> float:
        return time.time()


class ManualClock(Clock):
    """
    Clock that only moves when told to.

    Used in tests and anywhere expiry must be driven deterministically.
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        """Move the clock forward and return the new time."""
        self._now += seconds
        return self._now

    def set(self, value: float) -> None:
        self._now = float(value)
