"""Sink orchestration error taxonomy.

Every failure raised by the sink layer derives from SinkError and carries
a machine readable error_code, plus an optional retry_after hint for
failures a caller may retry later.
"""

from typing import Optional


class SinkError(Exception):
    """Base class for sink orchestration errors."""

    default_error_code = "SINK_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        retry_after: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.retry_after = retry_after


class ConfigError(SinkError):
    """Invalid or missing credentials/identifiers for a sink.

    Fatal for that sink's construction only, never for the process.
    """

    default_error_code = "INVALID_CONFIG"


class UnsupportedTypeError(SinkError):
    """The requested sink type has no implementation."""

    default_error_code = "UNSUPPORTED_SINK_TYPE"


class DeliveryError(SinkError):
    """A channel API call failed while delivering a notification."""

    default_error_code = "DELIVERY_FAILED"


class CompletionError(SinkError):
    """The completion service could not answer a prompt."""

    default_error_code = "COMPLETION_FAILED"


class CacheLookupError(SinkError, KeyError):
    """No live cache entry for the identity; callers treat it as a miss."""

    default_error_code = "CACHE_MISS"

    def __str__(self) -> str:
        return self.message
