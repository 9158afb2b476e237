"""Uniform result of a call to a channel API."""

from dataclasses import dataclass
from typing import Any, Optional

from infrastructure.operations.status import OperationStatus


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one webhook post or Slack API call.

    Sinks never return these to the dispatcher. A failed result is turned
    into a ``DeliveryError`` or ``ConfigError`` at the sink boundary:

        result = classify_requests_error(exc, service="Mattermost")
        if not result.is_success:
            raise DeliveryError(result.message, result.error_code, result.retry_after)
    """

    status: OperationStatus
    message: str
    error_code: Optional[str] = None
    # Seconds, when the remote side sent Retry-After
    retry_after: Optional[int] = None
    data: Optional[Any] = None

    @property
    def is_success(self) -> bool:
        return self.status is OperationStatus.SUCCESS

    @property
    def is_retryable(self) -> bool:
        """Rate limits, 5xx responses and network failures."""
        return self.status is OperationStatus.TRANSIENT_ERROR

    @classmethod
    def success(cls, data: Optional[Any] = None, message: str = "ok") -> "OperationResult":
        return cls(OperationStatus.SUCCESS, message, data=data)

    @classmethod
    def error(cls, status: OperationStatus, message: str, **details: Any) -> "OperationResult":
        """Failed result with an explicit status (UNAUTHORIZED, NOT_FOUND...).

        ``details`` accepts error_code, retry_after and data.
        """
        return cls(status, message, **details)

    @classmethod
    def transient_error(cls, message: str, error_code: Optional[str] = None,
                        retry_after: Optional[int] = None) -> "OperationResult":
        return cls(OperationStatus.TRANSIENT_ERROR, message, error_code, retry_after)

    @classmethod
    def permanent_error(cls, message: str, error_code: Optional[str] = None) -> "OperationResult":
        return cls(OperationStatus.PERMANENT_ERROR, message, error_code)
