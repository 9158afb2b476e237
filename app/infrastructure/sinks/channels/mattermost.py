"""Mattermost sink implementation using incoming webhooks."""

from typing import Any, Dict

from infrastructure.sinks.channels.base import format_timestamp
from infrastructure.sinks.channels.webhook import WebhookSink, tail_logs
from infrastructure.sinks.models import (
    MattermostSinkConfig,
    NotificationPayload,
    SinkType,
)

WARNING_COLOR = "#E81123"
INFO_COLOR = "#3AA3E3"


class MattermostSink(WebhookSink):
    """Posts event notifications to a Mattermost incoming webhook.

    The message text carries the same header as the Slack layout; subject
    and timestamps go into attachment fields, logs into a code block.
    """

    sink_type = SinkType.MATTERMOST
    config_class = MattermostSinkConfig
    service_name = "Mattermost"

    def build_body(self, payload: NotificationPayload) -> Dict[str, Any]:
        text = (
            f"🔔Cluster: **{payload.cluster_name}**, Type: **{payload.level}**, "
            f"Reason: **{payload.reason}**, Kind: **{payload.kind}**\n\n"
            f"🚦**Alert:** {payload.note}"
        )
        attachment: Dict[str, Any] = {
            "fallback": f"{payload.level}: {payload.note}",
            "color": INFO_COLOR if payload.level == "Normal" else WARNING_COLOR,
            "fields": [
                {"short": True, "title": "Namespace", "value": payload.namespace},
                {"short": True, "title": "Pod", "value": payload.subject},
                {
                    "short": True,
                    "title": "First seen",
                    "value": format_timestamp(payload.first_seen),
                },
                {
                    "short": True,
                    "title": "Last seen",
                    "value": format_timestamp(payload.last_seen),
                },
            ],
        }
        if payload.has_logs:
            attachment["title"] = payload.log_filename
            attachment["text"] = f"```\n{tail_logs(payload.logs)}\n```"

        body: Dict[str, Any] = {"text": text, "attachments": [attachment]}
        if self.config.channel:
            body["channel"] = self.config.channel
        if self.config.username:
            body["username"] = self.config.username
        if self.config.icon_url:
            body["icon_url"] = self.config.icon_url
        return body
