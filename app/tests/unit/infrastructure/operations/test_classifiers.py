"""Unit tests for error classifiers.

Tests cover:
- requests exception classification
- slack_sdk exception classification
- Retry-After header extraction
"""

from unittest.mock import MagicMock

import pytest
import requests
from slack_sdk.errors import SlackApiError

from infrastructure.operations.classifiers import (
    DEFAULT_RETRY_AFTER_SECONDS,
    classify_requests_error,
    classify_slack_error,
)
from infrastructure.operations.status import OperationStatus


def _http_error(status_code, headers=None):
    response = requests.Response()
    response.status_code = status_code
    response.headers.update(headers or {})
    return requests.HTTPError(f"{status_code} error", response=response)


def _slack_error(error, status_code=200, headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.__getitem__.side_effect = {"ok": False, "error": error}.__getitem__
    return SlackApiError(error, response)


@pytest.mark.unit
class TestClassifyRequestsError:
    """Tests for classify_requests_error()."""

    def test_429_with_retry_after(self):
        result = classify_requests_error(_http_error(429, {"Retry-After": "120"}), "Teams")

        assert result.status == OperationStatus.TRANSIENT_ERROR
        assert result.error_code == "RATE_LIMITED"
        assert result.retry_after == 120
        assert "Teams" in result.message

    @pytest.mark.parametrize("headers", [None, {"Retry-After": "soon"}])
    def test_429_without_usable_retry_after(self, headers):
        result = classify_requests_error(_http_error(429, headers))

        assert result.retry_after == DEFAULT_RETRY_AFTER_SECONDS

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_rejected_credentials(self, status_code):
        result = classify_requests_error(_http_error(status_code))

        assert result.status == OperationStatus.UNAUTHORIZED

    def test_404(self):
        assert classify_requests_error(_http_error(404)).status == OperationStatus.NOT_FOUND

    def test_5xx_is_transient(self):
        result = classify_requests_error(_http_error(503))

        assert result.status == OperationStatus.TRANSIENT_ERROR
        assert result.error_code == "HTTP_503"

    def test_400_is_permanent(self):
        result = classify_requests_error(_http_error(400))

        assert result.status == OperationStatus.PERMANENT_ERROR
        assert result.error_code == "HTTP_400"

    @pytest.mark.parametrize(
        "exc", [requests.ConnectionError("refused"), requests.Timeout("slow")]
    )
    def test_connection_problems_are_transient(self, exc):
        result = classify_requests_error(exc)

        assert result.status == OperationStatus.TRANSIENT_ERROR
        assert result.error_code == "CONNECTION_ERROR"

    def test_other_request_errors_are_permanent(self):
        result = classify_requests_error(requests.exceptions.InvalidURL("bad"))

        assert result.status == OperationStatus.PERMANENT_ERROR
        assert result.error_code == "REQUEST_ERROR"


@pytest.mark.unit
class TestClassifySlackError:
    """Tests for classify_slack_error()."""

    def test_ratelimited(self):
        result = classify_slack_error(
            _slack_error("ratelimited", status_code=429, headers={"Retry-After": "7"})
        )

        assert result.status == OperationStatus.TRANSIENT_ERROR
        assert result.error_code == "ratelimited"
        assert result.retry_after == 7
        assert result.message == "Slack API rate limited: ratelimited"

    @pytest.mark.parametrize("error", ["invalid_auth", "not_authed", "token_revoked"])
    def test_auth_errors(self, error):
        result = classify_slack_error(_slack_error(error))

        assert result.status == OperationStatus.UNAUTHORIZED
        assert result.error_code == error
        assert error in result.message

    def test_channel_not_found(self):
        result = classify_slack_error(_slack_error("channel_not_found"))

        assert result.status == OperationStatus.NOT_FOUND

    def test_unknown_slack_error_is_permanent(self):
        result = classify_slack_error(_slack_error("invalid_blocks"))

        assert result.status == OperationStatus.PERMANENT_ERROR
        assert result.error_code == "invalid_blocks"

    def test_non_slack_exception_is_transient(self):
        result = classify_slack_error(ConnectionResetError("reset by peer"))

        assert result.status == OperationStatus.TRANSIENT_ERROR
        assert result.error_code == "CONNECTION_ERROR"
