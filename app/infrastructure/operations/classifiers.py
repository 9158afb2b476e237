"""Error classifiers for channel API exceptions.

Converts transport-specific exceptions (requests for webhook based sinks,
slack_sdk for Slack) into standardized OperationResult objects so every
sink reports failures the same way.

Usage:
    from infrastructure.operations.classifiers import classify_requests_error

    try:
        response = session.post(url, json=body, timeout=10)
        response.raise_for_status()
    except requests.RequestException as exc:
        return classify_requests_error(exc)
"""

from dataclasses import replace
from typing import Any, Mapping, Optional

import requests
from slack_sdk.errors import SlackApiError

from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

DEFAULT_RETRY_AFTER_SECONDS = 60


def _parse_retry_after(headers: Optional[Mapping[str, Any]]) -> int:
    """Read a Retry-After header, falling back to the default delay."""
    if not headers:
        return DEFAULT_RETRY_AFTER_SECONDS
    value = headers.get("Retry-After") or headers.get("retry-after")
    if value is None:
        return DEFAULT_RETRY_AFTER_SECONDS
    try:
        return int(value)
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER_SECONDS


def _classify_status_code(
    status_code: Optional[int],
    service: str,
    headers: Optional[Mapping[str, Any]] = None,
    error_code: Optional[str] = None,
) -> OperationResult:
    """Map an HTTP status code to an OperationResult.

    Status Code Mapping:
    - 429: Rate limiting → TRANSIENT_ERROR with retry_after
    - 401/403: Credentials rejected → UNAUTHORIZED
    - 404: Channel or webhook gone → NOT_FOUND
    - 5xx: Server error → TRANSIENT_ERROR
    - Other: → PERMANENT_ERROR
    """
    if status_code == 429:
        return OperationResult.error(
            OperationStatus.TRANSIENT_ERROR,
            f"{service} API rate limited",
            error_code=error_code or "RATE_LIMITED",
            retry_after=_parse_retry_after(headers),
        )

    if status_code in (401, 403):
        return OperationResult.error(
            OperationStatus.UNAUTHORIZED,
            f"{service} API rejected the credentials",
            error_code=error_code or "UNAUTHORIZED",
        )

    if status_code == 404:
        return OperationResult.error(
            OperationStatus.NOT_FOUND,
            f"{service} channel not found",
            error_code=error_code or "NOT_FOUND",
        )

    if status_code is not None and status_code >= 500:
        return OperationResult.transient_error(
            f"{service} API server error ({status_code})",
            error_code=error_code or f"HTTP_{status_code}",
        )

    return OperationResult.permanent_error(
        f"{service} API error ({status_code})",
        error_code=error_code or (f"HTTP_{status_code}" if status_code else "UNKNOWN"),
    )


def classify_requests_error(exc: Exception, service: str = "Webhook") -> OperationResult:
    """Classify a requests exception into an OperationResult.

    Connection problems and timeouts are transient. HTTP errors are mapped
    by status code.

    Args:
        exc: Exception raised by requests (or raise_for_status)
        service: Service name used in messages (e.g. "Mattermost")

    Returns:
        OperationResult with status, message, error_code and retry_after
    """
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return _classify_status_code(
            exc.response.status_code, service, headers=exc.response.headers
        )

    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return OperationResult.transient_error(
            f"{service} connection error: {type(exc).__name__}: {str(exc)}",
            error_code="CONNECTION_ERROR",
        )

    return OperationResult.permanent_error(
        f"{service} request failed: {type(exc).__name__}: {str(exc)}",
        error_code="REQUEST_ERROR",
    )


def classify_slack_error(exc: Exception) -> OperationResult:
    """Classify a slack_sdk exception into an OperationResult.

    SlackApiError carries the HTTP status and the Slack error string
    (e.g. "channel_not_found", "ratelimited"), the latter is kept as the
    error code. Anything else is treated as a connection problem.

    Args:
        exc: Exception raised by a slack_sdk WebClient call

    Returns:
        OperationResult with status, message, error_code and retry_after
    """
    if not isinstance(exc, SlackApiError):
        return OperationResult.transient_error(
            f"Slack connection error: {type(exc).__name__}: {str(exc)}",
            error_code="CONNECTION_ERROR",
        )

    response = exc.response
    status_code = getattr(response, "status_code", None)
    headers = getattr(response, "headers", None)
    slack_error = None
    try:
        slack_error = response["error"]
    except (KeyError, TypeError):
        slack_error = None

    if slack_error in ("ratelimited", "rate_limited"):
        status_code = 429
    elif slack_error in ("invalid_auth", "not_authed", "token_revoked", "account_inactive"):
        status_code = 401
    elif slack_error in ("channel_not_found", "not_in_channel"):
        status_code = 404

    result = _classify_status_code(
        status_code, "Slack", headers=headers, error_code=slack_error
    )
    if slack_error:
        result = replace(result, message=f"{result.message}: {slack_error}")
    return result
