"""Test fixtures for channel sink tests."""

from typing import Any, Dict, Optional
from unittest.mock import MagicMock

import pytest
from slack_sdk.errors import SlackApiError


@pytest.fixture
def slack_api_error_factory():
    """Factory for SlackApiError instances.

    Example:
        error = slack_api_error_factory("ratelimited", status_code=429,
                                        headers={"Retry-After": "30"})
    """

    def _factory(
        error: str = "channel_not_found",
        status_code: int = 200,
        headers: Optional[Dict[str, Any]] = None,
    ) -> SlackApiError:
        response = MagicMock()
        response.status_code = status_code
        response.headers = headers or {}
        response.__getitem__.side_effect = {"ok": False, "error": error}.__getitem__
        return SlackApiError(f"The request to the Slack API failed: {error}", response)

    return _factory


@pytest.fixture
def recorded_sleeps():
    """Sleep replacement recording requested delays."""
    calls = []

    def _sleep(seconds: float) -> None:
        calls.append(seconds)

    _sleep.calls = calls
    return _sleep
