"""Sink factory: build-or-reuse live sinks by identity.

The factory is the only place sinks are constructed. For every request it
consults the registry first; a cached sink whose configuration snapshot is
equal to the requested configuration is reused as is, while a different
snapshot invalidates the cached sink (tearing it down) and builds a new one.
"""

import threading
from typing import Any, Callable, Dict, Optional, Type, Union

import structlog

from infrastructure.configuration import SinkSettings
from infrastructure.sinks.channels import MattermostSink, SlackSink, TeamsSink
from infrastructure.sinks.channels.base import Sink
from infrastructure.sinks.channels.slack_interactive import CompletionService
from infrastructure.sinks.errors import (
    CacheLookupError,
    ConfigError,
    DeliveryError,
    SinkError,
    UnsupportedTypeError,
)
from infrastructure.sinks.registry import SinkRegistry
from infrastructure.sinks.models import SinkType

logger = structlog.get_logger()

SinkBuilder = Callable[[Any], Sink]

SINK_CLASSES: Dict[SinkType, Type[Sink]] = {
    SinkType.SLACK: SlackSink,
    SinkType.MATTERMOST: MattermostSink,
    SinkType.TEAMS: TeamsSink,
}


class SinkFactory:
    """Builds sinks on cache miss and reuses them on cache hit.

    Args:
        registry: Sink registry holding live sinks
        completion_client: Completion service handed to Slack sinks
        shutdown_event: Process-wide cancellation signal for listeners
        ttl_seconds: Lifetime of cached sinks, registry default when None
        rate_limit_seconds: Pause after every delivery
        webhook_timeout_seconds: HTTP timeout for webhook sinks
        listener_join_timeout_seconds: Wait for listener threads on teardown
        builders: Optional per-type builder overrides (testing)

    Example:
        factory = SinkFactory(registry, completion_client=completions)
        sink = factory.build("prod/default/ops", SinkType.SLACK, slack_config)
        sink.forward_event(payload)
    """

    def __init__(
        self,
        registry: SinkRegistry,
        completion_client: Optional[CompletionService] = None,
        shutdown_event: Optional[threading.Event] = None,
        ttl_seconds: Optional[float] = None,
        rate_limit_seconds: float = 1.0,
        webhook_timeout_seconds: float = 10.0,
        listener_join_timeout_seconds: float = 5.0,
        builders: Optional[Dict[SinkType, SinkBuilder]] = None,
    ):
        self.registry = registry
        self.completion_client = completion_client
        self.shutdown_event = shutdown_event or threading.Event()
        self.ttl_seconds = ttl_seconds
        self.rate_limit_seconds = rate_limit_seconds
        self.webhook_timeout_seconds = webhook_timeout_seconds
        self.listener_join_timeout_seconds = listener_join_timeout_seconds

        self._builders: Dict[SinkType, SinkBuilder] = {
            SinkType.SLACK: self._build_slack,
            SinkType.MATTERMOST: self._build_mattermost,
            SinkType.TEAMS: self._build_teams,
        }
        if builders:
            self._builders.update(builders)

    @classmethod
    def from_settings(
        cls,
        registry: SinkRegistry,
        sink_settings: SinkSettings,
        completion_client: Optional[CompletionService] = None,
        shutdown_event: Optional[threading.Event] = None,
    ) -> "SinkFactory":
        return cls(
            registry=registry,
            completion_client=completion_client,
            shutdown_event=shutdown_event,
            ttl_seconds=sink_settings.SINK_CACHE_TTL_SECONDS,
            rate_limit_seconds=sink_settings.SLACK_API_RATE_LIMIT_SECONDS,
            webhook_timeout_seconds=sink_settings.WEBHOOK_TIMEOUT_SECONDS,
            listener_join_timeout_seconds=sink_settings.LISTENER_JOIN_TIMEOUT_SECONDS,
        )

    def build(
        self,
        identity: str,
        sink_type: Union[SinkType, str],
        config: Any,
    ) -> Sink:
        """Return a live sink for identity, building it when needed.

        Args:
            identity: Sink identity (cache key)
            sink_type: Declared channel type
            config: Channel configuration snapshot

        Returns:
            A live sink, either cached or newly built and cached

        Raises:
            UnsupportedTypeError: If sink_type has no implementation
            ConfigError: If the configuration is invalid for the type
            DeliveryError: If the sink could not connect
        """
        resolved_type = self._resolve_type(sink_type)
        log = logger.bind(identity=identity, sink_type=resolved_type.value)

        builder = self._builders.get(resolved_type)
        if builder is None:
            raise UnsupportedTypeError(f"unsupported sink type: {resolved_type.value}")

        sink_class = SINK_CLASSES[resolved_type]
        if not isinstance(config, sink_class.config_class):
            raise ConfigError(
                f"configuration of type {type(config).__name__} does not match "
                f"sink type {resolved_type.value}",
                error_code="CONFIG_TYPE_MISMATCH",
            )

        try:
            entry = self.registry.get_entry(identity)
        except CacheLookupError:
            entry = None

        if entry is not None:
            if entry.config == config:
                return entry.sink
            log.info("sink_config_changed")
            self.registry.remove_if(identity, entry)

        sink_class.validate_config(config)

        sink = builder(config)
        listener = self._connect(sink, log)

        entry, installed = self.registry.install(
            identity,
            sink,
            config,
            ttl_seconds=self.ttl_seconds,
            listener=listener,
        )
        if not installed:
            self._discard(sink, listener, log)
            return entry.sink

        log.info("sink_built")
        return sink

    def _resolve_type(self, sink_type: Union[SinkType, str]) -> SinkType:
        if isinstance(sink_type, SinkType):
            return sink_type
        try:
            return SinkType(sink_type)
        except ValueError:
            raise UnsupportedTypeError(f"unsupported sink type: {sink_type}") from None

    def _connect(self, sink: Sink, log: Any) -> Any:
        try:
            sink.open()
            return sink.start(self.shutdown_event)
        except SinkError as e:
            log.error("sink_connect_failed", error=e.message, error_code=e.error_code)
            sink.close()
            raise
        except Exception as e:
            log.error("sink_connect_failed", error=str(e), exc_info=True)
            sink.close()
            raise DeliveryError(
                f"failed to connect sink: {e}", error_code="CONNECT_FAILED"
            ) from e

    def _discard(self, sink: Sink, listener: Any, log: Any) -> None:
        if listener is not None:
            listener.cancel()
        sink.close()
        log.info("sink_build_discarded")

    def _build_slack(self, config: Any) -> Sink:
        return SlackSink(
            config,
            completion_client=self.completion_client,
            rate_limit_seconds=self.rate_limit_seconds,
            join_timeout=self.listener_join_timeout_seconds,
        )

    def _build_mattermost(self, config: Any) -> Sink:
        return MattermostSink(
            config,
            rate_limit_seconds=self.rate_limit_seconds,
            timeout=self.webhook_timeout_seconds,
        )

    def _build_teams(self, config: Any) -> Sink:
        return TeamsSink(
            config,
            rate_limit_seconds=self.rate_limit_seconds,
            timeout=self.webhook_timeout_seconds,
        )
