"""Microsoft Teams sink implementation using incoming webhooks."""

from typing import Any, Dict, List

from infrastructure.sinks.channels.base import format_timestamp
from infrastructure.sinks.channels.webhook import WebhookSink, tail_logs
from infrastructure.sinks.models import (
    NotificationPayload,
    SinkType,
    TeamsSinkConfig,
)

WARNING_THEME = "E81123"
INFO_THEME = "3AA3E3"


class TeamsSink(WebhookSink):
    """Posts event notifications as MessageCards to a Teams webhook."""

    sink_type = SinkType.TEAMS
    config_class = TeamsSinkConfig
    service_name = "Teams"

    def build_body(self, payload: NotificationPayload) -> Dict[str, Any]:
        facts = [
            {"name": "Cluster", "value": payload.cluster_name},
            {"name": "Namespace", "value": payload.namespace},
            {"name": "Pod", "value": payload.subject},
            {"name": "Kind", "value": payload.kind},
            {"name": "Reason", "value": payload.reason},
            {"name": "First seen", "value": format_timestamp(payload.first_seen)},
            {"name": "Last seen", "value": format_timestamp(payload.last_seen)},
        ]
        sections: List[Dict[str, Any]] = [
            {
                "activityTitle": f"🚦 {payload.note}",
                "facts": facts,
                "markdown": True,
            }
        ]
        if payload.has_logs:
            sections.append(
                {
                    "title": payload.log_filename,
                    "text": f"```\n{tail_logs(payload.logs)}\n```",
                    "markdown": True,
                }
            )
        return {
            "@type": "MessageCard",
            "@context": "https://schema.org/extensions",
            "themeColor": INFO_THEME if payload.level == "Normal" else WARNING_THEME,
            "summary": f"{payload.level}: {payload.reason}",
            "title": f"🔔 {payload.level} {payload.kind} event in {payload.cluster_name}",
            "sections": sections,
        }
