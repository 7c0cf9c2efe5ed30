"""
Error types for the caching, fetching and windowing layers.

Only fetch errors ever reach callers. Persistence and serialization errors are
raised inside the durable mirror and caught at its boundary; window parameter
errors are raised only when strict validation is requested.
"""
from typing import Any, Dict, Optional


class DataCoreError(Exception):
    """Base error for the data core."""


class FetchError(DataCoreError):
    """
    Normalized failure of a caller-supplied fetch operation.

    Carries a human-readable message and, when the underlying error exposed
    one, the HTTP-like status code.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @classmethod
    def from_exception(cls, exc: BaseException) -> "FetchError":
        """Build a FetchError from any exception raised by a fetch operation."""
        if isinstance(exc, FetchError):
            return exc

        status_code = _extract_status_code(exc)
        message = str(exc) or exc.__class__.__name__
        return cls(message, status_code=status_code)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        result: Dict[str, Any] = {"message": self.message}
        if self.status_code is not None:
            result["statusCode"] = self.status_code
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, status_code={self.status_code!r})"


class TransientFetchError(FetchError):
    """Retryable fetch failure raised by operations that know the cause is temporary."""


class PersistenceError(DataCoreError):
    """Durable store I/O failed; caching continues memory-only."""


class SerializationError(PersistenceError):
    """A value could not be serialized for the durable store."""


class WindowParameterError(DataCoreError, ValueError):
    """Invalid window sizing input (only raised under strict validation)."""


def _extract_status_code(exc: BaseException) -> Optional[int]:
    """Find a status code on the exception or on an attached response object."""
    for candidate in (exc, getattr(exc, "response", None)):
        if candidate is None:
            continue
        for attr in ("status_code", "status"):
            value = getattr(candidate, attr, None)
            if isinstance(value, int) and not isinstance(value, bool):
                return value
    return None
