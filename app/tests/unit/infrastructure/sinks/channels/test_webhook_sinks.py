"""Unit tests for the webhook based sinks (Mattermost, Microsoft Teams).

Tests cover:
- Webhook URL validation
- Message bodies
- HTTP error classification
- Session lifecycle
"""

from unittest.mock import MagicMock

import pytest
import requests

from infrastructure.sinks.channels import MattermostSink, TeamsSink
from infrastructure.sinks.channels.webhook import MAX_LOG_CHARS, tail_logs
from infrastructure.sinks.errors import ConfigError, DeliveryError
from infrastructure.sinks.models import MattermostSinkConfig, TeamsSinkConfig


def _http_error(status_code, headers=None):
    response = requests.Response()
    response.status_code = status_code
    response.headers.update(headers or {})
    return requests.HTTPError(f"{status_code} error", response=response)


@pytest.fixture
def mock_session():
    session = MagicMock(spec=requests.Session)
    session.post.return_value.status_code = 200
    return session


@pytest.fixture
def mattermost_sink(mattermost_config, mock_session, recorded_sleeps):
    sink = MattermostSink(
        mattermost_config, session=mock_session, sleep=recorded_sleeps, timeout=3.0
    )
    sink.open()
    return sink


@pytest.fixture
def teams_sink(teams_config, mock_session, recorded_sleeps):
    sink = TeamsSink(teams_config, session=mock_session, sleep=recorded_sleeps)
    sink.open()
    return sink


@pytest.mark.unit
class TestWebhookValidation:
    """Tests for webhook URL rules."""

    @pytest.mark.parametrize(
        "url", ["", "not a url", "ftp://chat.example.com/hooks/x", "https://"]
    )
    def test_invalid_webhook_url(self, url):
        with pytest.raises(ConfigError) as exc_info:
            MattermostSink.validate_config(MattermostSinkConfig(webhook_url=url))

        assert exc_info.value.error_code == "INVALID_WEBHOOK_URL"

    def test_valid_webhook_url(self, teams_config):
        TeamsSink.validate_config(teams_config)


@pytest.mark.unit
class TestMattermostSink:
    """Tests for Mattermost delivery."""

    def test_forward_event_posts_body(
        self, mattermost_sink, mock_session, payload_factory, recorded_sleeps
    ):
        mattermost_sink.forward_event(payload_factory(reason="BackOff"))

        mock_session.post.assert_called_once()
        args, kwargs = mock_session.post.call_args
        assert args[0] == "https://chat.example.com/hooks/abc123"
        assert kwargs["timeout"] == 3.0
        body = kwargs["json"]
        assert "BackOff" in body["text"]
        assert body["channel"] == "alerts"
        assert body["username"] == "event-relay"
        assert "icon_url" not in body
        fields = {f["title"]: f["value"] for f in body["attachments"][0]["fields"]}
        assert fields["Namespace"] == "default"
        assert fields["Pod"] == "api-7f"
        assert recorded_sleeps.calls == [1.0]

    def test_logs_are_appended_as_code_block(self, mattermost_sink, mock_session, payload_factory):
        mattermost_sink.forward_event(payload_factory(logs="panic: boom"))

        attachment = mock_session.post.call_args.kwargs["json"]["attachments"][0]
        assert attachment["title"] == "default/api-7f.log"
        assert "panic: boom" in attachment["text"]

    def test_rate_limited_webhook_raises_delivery_error_with_hint(
        self, mattermost_sink, mock_session, payload_factory, recorded_sleeps
    ):
        mock_session.post.return_value.raise_for_status.side_effect = _http_error(
            429, {"Retry-After": "12"}
        )

        with pytest.raises(DeliveryError) as exc_info:
            mattermost_sink.forward_event(payload_factory())

        assert exc_info.value.error_code == "RATE_LIMITED"
        assert exc_info.value.retry_after == 12
        assert recorded_sleeps.calls == []

    def test_connection_error_raises_delivery_error(
        self, mattermost_sink, mock_session, payload_factory
    ):
        mock_session.post.side_effect = requests.ConnectionError("refused")

        with pytest.raises(DeliveryError) as exc_info:
            mattermost_sink.forward_event(payload_factory())

        assert exc_info.value.error_code == "CONNECTION_ERROR"

    def test_forward_before_open_raises(self, mattermost_config, payload_factory):
        sink = MattermostSink(mattermost_config)

        with pytest.raises(DeliveryError) as exc_info:
            sink.forward_event(payload_factory())

        assert exc_info.value.error_code == "SINK_NOT_OPEN"

    def test_close_closes_session_once(self, mattermost_sink, mock_session):
        mattermost_sink.close()
        mattermost_sink.close()

        mock_session.close.assert_called_once()
        assert mattermost_sink.start() is None


@pytest.mark.unit
class TestTeamsSink:
    """Tests for Microsoft Teams delivery."""

    def test_forward_event_posts_message_card(self, teams_sink, mock_session, payload_factory):
        teams_sink.forward_event(payload_factory(reason="OOMKilled"))

        body = mock_session.post.call_args.kwargs["json"]
        assert body["@type"] == "MessageCard"
        assert body["summary"] == "Warning: OOMKilled"
        facts = {f["name"]: f["value"] for f in body["sections"][0]["facts"]}
        assert facts["Cluster"] == "prod"
        assert facts["Reason"] == "OOMKilled"
        assert len(body["sections"]) == 1

    def test_logs_add_a_section(self, teams_sink, mock_session, payload_factory):
        teams_sink.forward_event(payload_factory(logs="line 1\nline 2"))

        sections = mock_session.post.call_args.kwargs["json"]["sections"]
        assert len(sections) == 2
        assert "line 2" in sections[1]["text"]

    def test_unauthorized_webhook(self, teams_sink, mock_session, payload_factory):
        mock_session.post.return_value.raise_for_status.side_effect = _http_error(403)

        with pytest.raises(DeliveryError) as exc_info:
            teams_sink.forward_event(payload_factory())

        assert exc_info.value.error_code == "UNAUTHORIZED"

    def test_open_builds_session(self, teams_config):
        sink = TeamsSink(teams_config)

        sink.open()
        try:
            assert sink._session is not None
            assert sink._session.headers["Content-Type"] == "application/json"
        finally:
            sink.close()


@pytest.mark.unit
class TestTailLogs:
    """Tests for log excerpt truncation."""

    def test_short_logs_unchanged(self):
        assert tail_logs("  hello\n") == "hello"

    def test_long_logs_keep_the_tail(self):
        logs = "x" * MAX_LOG_CHARS + "END"

        result = tail_logs(logs)

        assert result.endswith("END")
        assert len(result) == MAX_LOG_CHARS + 1
