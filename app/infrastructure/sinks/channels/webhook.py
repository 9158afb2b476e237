"""Shared base for incoming-webhook sinks (Mattermost, Teams)."""

import time
from abc import abstractmethod
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse

import requests
import structlog

from infrastructure.operations import OperationResult, classify_requests_error
from infrastructure.sinks.channels.base import Sink
from infrastructure.sinks.errors import ConfigError, DeliveryError
from infrastructure.sinks.models import NotificationPayload

logger = structlog.get_logger()

# Chat webhooks reject oversized bodies; keep the tail of the log
MAX_LOG_CHARS = 4000


def tail_logs(logs: str, limit: int = MAX_LOG_CHARS) -> str:
    """Last ``limit`` characters of a log excerpt."""
    logs = logs.strip()
    if len(logs) <= limit:
        return logs
    return "…" + logs[-limit:]


class WebhookSink(Sink):
    """Sink posting a JSON body to an incoming webhook URL.

    Subclasses build the channel specific body in ``build_body``.

    Args:
        config: Config with a ``webhook_url`` attribute
        rate_limit_seconds: Pause after every successful post
        timeout: HTTP timeout in seconds
        session: Optional pre-built requests session (testing)
    """

    service_name = "Webhook"

    def __init__(
        self,
        config: Any,
        rate_limit_seconds: float = 1.0,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(config, rate_limit_seconds=rate_limit_seconds, sleep=sleep)
        self.timeout = timeout
        self._session = session
        self._log = logger.bind(sink_type=self.sink_type.value)

    @classmethod
    def validate_config(cls, config: Any) -> None:
        parsed = urlparse(config.webhook_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(
                f"no valid {cls.service_name} webhook url",
                error_code="INVALID_WEBHOOK_URL",
            )

    def open(self) -> None:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(
                {
                    "User-Agent": "event-sink-relay/0.1",
                    "Content-Type": "application/json",
                }
            )

    @abstractmethod
    def build_body(self, payload: NotificationPayload) -> Dict[str, Any]:
        """Channel specific JSON body for the payload."""
        pass

    def post(self, body: Dict[str, Any]) -> OperationResult:
        if self._session is None:
            return OperationResult.permanent_error(
                f"{self.service_name} sink is not open", error_code="SINK_NOT_OPEN"
            )
        try:
            response = self._session.post(
                self.config.webhook_url, json=body, timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            return classify_requests_error(e, service=self.service_name)
        return OperationResult.success(
            data={"status_code": response.status_code},
            message=f"{self.service_name} webhook accepted the message",
        )

    def forward_event(self, payload: NotificationPayload) -> None:
        log = self._log.bind(reason=payload.reason, subject=payload.subject)
        result = self.post(self.build_body(payload))
        if not result.is_success:
            log.error(
                "webhook_delivery_failed",
                error=result.message,
                error_code=result.error_code,
            )
            raise DeliveryError(
                result.message,
                error_code=result.error_code,
                retry_after=result.retry_after,
            )
        log.info("webhook_message_posted")
        self._pace()

    def close(self) -> None:
        if self.closed:
            return
        super().close()
        if self._session is not None:
            self._session.close()
