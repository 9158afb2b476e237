"""Operation result types and status enums.

Standardized result types for calls to external channel APIs, including
status enums, result dataclasses, and error classifiers for transport
exceptions.
"""

from infrastructure.operations.classifiers import (
    classify_requests_error,
    classify_slack_error,
)
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
    "classify_requests_error",
    "classify_slack_error",
]
