"""Sink orchestration.

Delivers normalized cluster event notifications to chat channels:

- SinkRegistry: TTL and capacity bounded cache of live sinks
- SinkFactory: build-or-reuse sinks by identity and configuration
- SinkDispatcher: fan a payload out to the configured channels
- EventRelay: cluster event in, channel notifications out

Example:
    from infrastructure.sinks import SinkDispatcher, SinkFactory, SinkRegistry

    registry = SinkRegistry(capacity=32, default_ttl_seconds=3600)
    factory = SinkFactory(registry, completion_client=completions)
    dispatcher = SinkDispatcher(factory)
    results = dispatcher.dispatch("prod", sink_specs, payload)
"""

from infrastructure.sinks.errors import (
    CacheLookupError,
    CompletionError,
    ConfigError,
    DeliveryError,
    SinkError,
    UnsupportedTypeError,
)
from infrastructure.sinks.models import (
    DispatchReport,
    DispatchResult,
    DispatchStatus,
    MattermostSinkConfig,
    NotificationPayload,
    SinkSpec,
    SinkType,
    SlackSinkConfig,
    TeamsSinkConfig,
    sink_identity,
)
from infrastructure.sinks.listener import ListenerHandle
from infrastructure.sinks.registry import CacheEntry, SinkRegistry
from infrastructure.sinks.factory import SinkFactory
from infrastructure.sinks.dispatcher import SinkDispatcher
from infrastructure.sinks.relay import EventRelay, RelayOutcome, parse_sink_specs

__all__ = [
    # Errors
    "SinkError",
    "ConfigError",
    "UnsupportedTypeError",
    "DeliveryError",
    "CompletionError",
    "CacheLookupError",
    # Models
    "SinkType",
    "SinkSpec",
    "SlackSinkConfig",
    "MattermostSinkConfig",
    "TeamsSinkConfig",
    "NotificationPayload",
    "DispatchStatus",
    "DispatchResult",
    "DispatchReport",
    "sink_identity",
    # Core
    "ListenerHandle",
    "CacheEntry",
    "SinkRegistry",
    "SinkFactory",
    "SinkDispatcher",
    "EventRelay",
    "RelayOutcome",
    "parse_sink_specs",
]
