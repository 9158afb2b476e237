"""Slack sink implementation.

Posts event notifications as Block Kit messages, attaches container logs
as files and runs a Socket Mode interaction loop so users can ask the
completion service for a remediation suggestion.
"""

import threading
import time
from typing import Any, Callable, Dict, List, Optional

import structlog
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError
from slack_sdk.socket_mode import SocketModeClient

from infrastructure.operations import OperationStatus, classify_slack_error
from infrastructure.sinks.channels.base import Sink, format_timestamp
from infrastructure.sinks.channels.slack_interactive import (
    CompletionService,
    SlackInteractionLoop,
)
from infrastructure.sinks.errors import ConfigError, DeliveryError
from infrastructure.sinks.listener import ListenerHandle
from infrastructure.sinks.models import (
    NotificationPayload,
    SinkType,
    SlackSinkConfig,
)

logger = structlog.get_logger()

BOT_TOKEN_PREFIX = "xoxb-"
APP_LEVEL_TOKEN_PREFIX = "xapp-"

ASK_CALLBACK_ID = "askGPT"
ASK_ACTION_NAME = "askgpt_action"


def build_event_blocks(payload: NotificationPayload) -> List[Dict[str, Any]]:
    """Block Kit layout of an event notification."""
    header_text = (
        f"🔔Cluster: *{payload.cluster_name}*, Type: *{payload.level}*, "
        f"Reason: *{payload.reason}*, Kind: *{payload.kind}* \n\n"
        f" 🚦*Alert:* {payload.note}"
    )
    subject_text = f"• *namespace:* {payload.namespace}\n• *pod:* {payload.subject}"
    timestamp_text = (
        f"🔛 *First seen:* {format_timestamp(payload.first_seen)}\n"
        f" 🔚 *Last Seen:* {format_timestamp(payload.last_seen)}"
    )
    return [
        {"type": "divider"},
        _section(header_text),
        _section(subject_text),
        _section(timestamp_text),
    ]


def build_ask_attachment(payload: NotificationPayload) -> Dict[str, Any]:
    """Legacy attachment carrying the "ask assistant" button.

    The button value is the event note, which becomes the prompt.
    """
    return {
        "pretext": "🆘 *Use OpenAI Chat API to analyse the Event and suggest you a course of action:*",
        "fallback": "Your client is not supported",
        "callback_id": ASK_CALLBACK_ID,
        "color": "#3AA3E3",
        "actions": [
            {
                "name": ASK_ACTION_NAME,
                "text": "💬 Ask ChatGPT for help",
                "type": "button",
                "value": payload.note,
                "style": "primary",
            }
        ],
    }


def _section(text: str) -> Dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


class SlackSink(Sink):
    """Slack notification sink with a Socket Mode interaction loop.

    Args:
        config: SlackSinkConfig with bot token, app-level token and channel
        completion_client: Service answering "ask assistant" prompts, or None
        rate_limit_seconds: Pause after every successful post
        web_client: Optional pre-built WebClient (testing)
        socket_client_factory: Optional factory for the Socket Mode client (testing)
        join_timeout: Seconds to wait for the listener thread on teardown

    Example:
        sink = SlackSink(config, completion_client=completions)
        sink.open()
        handle = sink.start(shutdown_event)
        sink.forward_event(payload)
    """

    sink_type = SinkType.SLACK
    config_class = SlackSinkConfig

    def __init__(
        self,
        config: SlackSinkConfig,
        completion_client: Optional[CompletionService] = None,
        rate_limit_seconds: float = 1.0,
        web_client: Optional[WebClient] = None,
        socket_client_factory: Optional[Callable[[WebClient], Any]] = None,
        join_timeout: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(config, rate_limit_seconds=rate_limit_seconds, sleep=sleep)
        self._completion_client = completion_client
        self._client: Optional[WebClient] = web_client
        self._socket_client_factory = socket_client_factory or self._default_socket_client
        self._join_timeout = join_timeout
        self._log = logger.bind(sink_type=self.sink_type.value, channel_id=config.channel_id)

    @classmethod
    def validate_config(cls, config: SlackSinkConfig) -> None:
        if not config.bot_token.startswith(BOT_TOKEN_PREFIX):
            raise ConfigError("no valid bot token", error_code="INVALID_BOT_TOKEN")
        if not config.app_level_token.startswith(APP_LEVEL_TOKEN_PREFIX):
            raise ConfigError(
                "no valid app level token", error_code="INVALID_APP_LEVEL_TOKEN"
            )
        if not config.channel_id.strip():
            raise ConfigError("channel id is required", error_code="MISSING_CHANNEL_ID")

    @property
    def client(self) -> WebClient:
        if self._client is None:
            raise DeliveryError("slack sink is not open", error_code="SINK_NOT_OPEN")
        return self._client

    def open(self) -> None:
        if self._client is None:
            self._client = WebClient(token=self.config.bot_token)
        self._log.debug("slack_client_opened")

    def _default_socket_client(self, web_client: WebClient) -> SocketModeClient:
        return SocketModeClient(
            app_token=self.config.app_level_token,
            web_client=web_client,
            trace_enabled=self.config.debug,
        )

    def start(
        self, shutdown_event: Optional[threading.Event] = None
    ) -> Optional[ListenerHandle]:
        """Connect Socket Mode and start the interaction loop thread.

        Raises:
            ConfigError: If Slack rejects the app-level token
            DeliveryError: If the Socket Mode connection can not be opened
        """
        if self._listener is not None:
            return self._listener

        socket_client = self._socket_client_factory(self.client)
        loop = SlackInteractionLoop(
            web_client=self.client,
            socket_client=socket_client,
            channel_id=self.config.channel_id,
            completion_client=self._completion_client,
        )
        try:
            self._listener = loop.start(
                shutdown_event=shutdown_event, join_timeout=self._join_timeout
            )
        except SlackApiError as e:
            loop.close_socket()
            result = classify_slack_error(e)
            self._log.error("slack_socket_mode_connect_failed", error=result.message)
            if result.status == OperationStatus.UNAUTHORIZED:
                raise ConfigError(result.message, error_code=result.error_code) from e
            raise DeliveryError(
                result.message,
                error_code=result.error_code,
                retry_after=result.retry_after,
            ) from e
        return self._listener

    def forward_event(self, payload: NotificationPayload) -> None:
        """Post the event message, upload logs if present, then pace.

        Raises:
            DeliveryError: If posting the message or uploading logs failed
        """
        log = self._log.bind(reason=payload.reason, subject=payload.subject)
        try:
            response = self.client.chat_postMessage(
                channel=self.config.channel_id,
                text=f"{payload.level}: {payload.note}",
                blocks=build_event_blocks(payload),
                attachments=[build_ask_attachment(payload)],
            )
            log.info("slack_message_posted", ts=response.get("ts"))

            if payload.has_logs:
                filename = payload.log_filename
                self.client.files_upload_v2(
                    channel=self.config.channel_id,
                    content=payload.logs,
                    filename=filename,
                    title=filename,
                    initial_comment=filename,
                )
                log.info("slack_logs_uploaded", filename=filename)
        except SlackApiError as e:
            result = classify_slack_error(e)
            log.error(
                "slack_delivery_failed",
                error=result.message,
                error_code=result.error_code,
            )
            raise DeliveryError(
                result.message,
                error_code=result.error_code,
                retry_after=result.retry_after,
            ) from e

        self._pace()
