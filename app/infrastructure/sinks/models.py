"""Sink orchestration core models.

Notification payloads, per-channel sink configurations and dispatch results.

Uses Pydantic BaseModel for:
- Immutability of payloads and configuration snapshots (frozen models)
- Field-by-field value equality, which drives cache invalidation
- Discriminated union over sink types for configs loaded from the cluster
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SinkType(str, Enum):
    """Closed set of supported notification channel types."""

    SLACK = "slack"
    MATTERMOST = "mattermost"
    TEAMS = "microsoft_teams"


class NotificationPayload(BaseModel):
    """Normalized record of one cluster event, ready for any channel.

    Attributes:
        level: Event type as reported by the cluster (e.g. "Warning")
        note: Human readable event message
        common_labels: Labels shared by every notification of the process
            (always includes cluster_name)
        extra_labels: Per-event labels: namespace, pod, kind, type, reason
        first_seen: First time the event was observed
        last_seen: Last time the event was observed
        logs: Optional container log excerpt

    Example:
        payload = NotificationPayload(
            level="Warning",
            note="Back-off restarting failed container",
            common_labels={"cluster_name": "prod"},
            extra_labels={"namespace": "default", "pod": "api-7f",
                          "kind": "Pod", "reason": "BackOff"},
        )
    """

    model_config = ConfigDict(frozen=True)

    level: str
    note: str
    common_labels: Dict[str, str] = Field(default_factory=dict)
    extra_labels: Dict[str, str] = Field(default_factory=dict)
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    logs: str = ""

    @property
    def cluster_name(self) -> str:
        return self.common_labels.get("cluster_name", "")

    @property
    def namespace(self) -> str:
        return self.extra_labels.get("namespace", "")

    @property
    def subject(self) -> str:
        """Name of the object the event regards."""
        return self.extra_labels.get("pod", "")

    @property
    def kind(self) -> str:
        return self.extra_labels.get("kind", "")

    @property
    def reason(self) -> str:
        return self.extra_labels.get("reason", "")

    @property
    def has_logs(self) -> bool:
        return bool(self.logs and self.logs.strip())

    @property
    def log_filename(self) -> str:
        """File name used when the log excerpt is attached."""
        return f"{self.namespace}/{self.subject}.log"


class SlackSinkConfig(BaseModel):
    """Slack channel configuration.

    Attributes:
        bot_token: Bot user OAuth token (xoxb-*)
        channel_id: Channel the notifications are posted to
        app_level_token: App-level token used by Socket Mode (xapp-*)
        debug: Enable slack_sdk debug tracing
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["slack"] = "slack"
    bot_token: str = Field(alias="botToken")
    channel_id: str = Field(alias="channelID")
    app_level_token: str = Field(alias="appLevelToken")
    debug: bool = False


class MattermostSinkConfig(BaseModel):
    """Mattermost incoming webhook configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["mattermost"] = "mattermost"
    webhook_url: str = Field(alias="webhookURL")
    channel: Optional[str] = None
    username: Optional[str] = None
    icon_url: Optional[str] = Field(default=None, alias="iconURL")


class TeamsSinkConfig(BaseModel):
    """Microsoft Teams incoming webhook configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["microsoft_teams"] = "microsoft_teams"
    webhook_url: str = Field(alias="webhookURL")


SinkConfig = Annotated[
    Union[SlackSinkConfig, MattermostSinkConfig, TeamsSinkConfig],
    Field(discriminator="type"),
]


class SinkSpec(BaseModel):
    """One configured notification channel, as loaded from the cluster.

    Attributes:
        namespace: Namespace of the configuration object
        name: Name of the configuration object
        excluded_reasons: Event reasons never forwarded to this channel
        config: Channel specific configuration

    Example:
        spec = SinkSpec(
            namespace="default",
            name="team-slack",
            config=SlackSinkConfig(bot_token="xoxb-...", channel_id="C123",
                                   app_level_token="xapp-..."),
        )
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    namespace: str
    name: str
    excluded_reasons: List[str] = Field(default_factory=list, alias="excludedReasons")
    config: SinkConfig

    @property
    def sink_type(self) -> SinkType:
        return SinkType(self.config.type)

    def excludes(self, reason: str) -> bool:
        return reason in self.excluded_reasons


def sink_identity(scope: str, namespace: str, name: str) -> str:
    """Stable cache key of one configured channel instance.

    Args:
        scope: Cluster name the relay runs for
        namespace: Namespace of the configuration object
        name: Name of the configuration object

    Returns:
        "<scope>/<namespace>/<name>"
    """
    return f"{scope}/{namespace}/{name}"


class DispatchStatus(Enum):
    """Outcome of dispatching one payload to one configured channel."""

    SENT = "sent"
    FAILED = "failed"
    EXCLUDED = "excluded"
    SKIPPED = "skipped"


class DispatchResult(BaseModel):
    """Result of one channel in a dispatch call.

    Attributes:
        identity: Sink identity of the channel
        sink_type: Channel type
        status: Dispatch outcome
        message: Human-readable result message
        error_code: Machine error code for failures
        retry_after: Seconds the caller should wait before re-dispatching
    """

    identity: str
    sink_type: SinkType
    status: DispatchStatus
    message: str = ""
    error_code: Optional[str] = None
    retry_after: Optional[int] = None

    @property
    def is_success(self) -> bool:
        return self.status == DispatchStatus.SENT

    @property
    def is_failure(self) -> bool:
        return self.status == DispatchStatus.FAILED


class DispatchReport(BaseModel):
    """All per-channel results of one dispatch call."""

    results: List[DispatchResult] = Field(default_factory=list)

    @property
    def sent(self) -> List[DispatchResult]:
        return [r for r in self.results if r.is_success]

    @property
    def failed(self) -> List[DispatchResult]:
        return [r for r in self.results if r.is_failure]

    @property
    def requeue_after(self) -> Optional[int]:
        """Longest retry hint among failures, None when nothing failed."""
        hints = [r.retry_after or 0 for r in self.failed]
        if not hints:
            return None
        return max(hints)
