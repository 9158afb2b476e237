"""Status codes of channel API calls."""

from enum import Enum


class OperationStatus(Enum):
    """How a channel API call ended.

    UNAUTHORIZED (rejected token) and NOT_FOUND (unknown channel or revoked
    webhook) are kept apart from PERMANENT_ERROR so callers can tell them
    apart. The Slack sink raises a ConfigError for UNAUTHORIZED while
    connecting Socket Mode; every other failure becomes a DeliveryError.
    """

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
