"""Event relay: from one cluster event to channel notifications.

Glues event normalization, pod log collection and sink dispatch together.
One EventRelay is built at startup (see main.build_relay) and owns the
process-wide shutdown event and the sink registry.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Protocol

import structlog
from pydantic import TypeAdapter, ValidationError

from infrastructure.logging import bind_event_context
from infrastructure.sinks import events
from infrastructure.sinks.dispatcher import SinkDispatcher
from infrastructure.sinks.models import DispatchReport, DispatchResult, SinkSpec
from infrastructure.sinks.registry import SinkRegistry

logger = structlog.get_logger()

_sink_spec_adapter = TypeAdapter(SinkSpec)


class LogSource(Protocol):
    """Anything able to read the recent logs of a pod."""

    def read_logs(self, namespace: str, pod: str, since: Optional[datetime] = None) -> str: ...


@dataclass
class RelayOutcome:
    """Result of relaying one event.

    Attributes:
        relayed: False when the event was skipped (Normal events)
        results: Per-channel dispatch results
        requeue_after: Seconds before the caller should retry, None on success
    """

    relayed: bool
    results: List[DispatchResult] = field(default_factory=list)

    @property
    def report(self) -> DispatchReport:
        return DispatchReport(results=self.results)

    @property
    def requeue_after(self) -> Optional[int]:
        return self.report.requeue_after


def parse_sink_specs(raw_specs: Iterable[Mapping[str, Any]]) -> List[SinkSpec]:
    """Validate raw sink configuration objects, skipping invalid ones."""
    specs: List[SinkSpec] = []
    for raw in raw_specs:
        try:
            specs.append(_sink_spec_adapter.validate_python(raw))
        except ValidationError as e:
            logger.warning(
                "sink_spec_invalid",
                namespace=raw.get("namespace"),
                name=raw.get("name"),
                error=str(e),
            )
    return specs


class EventRelay:
    """Relays abnormal cluster events to every configured sink.

    Args:
        dispatcher: SinkDispatcher used for fan-out
        registry: Registry owning the live sinks, closed on shutdown
        cluster_name: Dispatch scope
        common_labels: Labels attached to every notification
        log_source: Optional pod log reader
        shutdown_event: Process-wide shutdown signal shared with listeners

    Example:
        relay = build_relay(settings)
        outcome = relay.handle_event(event, sink_specs)
        if outcome.requeue_after:
            schedule_retry(event, outcome.requeue_after)
    """

    def __init__(
        self,
        dispatcher: SinkDispatcher,
        registry: SinkRegistry,
        cluster_name: str,
        common_labels: Optional[Mapping[str, str]] = None,
        log_source: Optional[LogSource] = None,
        shutdown_event: Optional[threading.Event] = None,
    ):
        self.dispatcher = dispatcher
        self.registry = registry
        self.cluster_name = cluster_name
        self.common_labels = dict(common_labels or {})
        self.common_labels.setdefault("cluster_name", cluster_name)
        self.log_source = log_source
        self.shutdown_event = shutdown_event or threading.Event()

    def handle_event(self, event: Any, sink_specs: List[SinkSpec]) -> RelayOutcome:
        """Relay one event to the configured sinks.

        Args:
            event: events.k8s.io/v1 Event
            sink_specs: Channels configured for the cluster

        Returns:
            RelayOutcome with per-channel results
        """
        data = events.event_to_mapping(event)
        regarding = data.get("regarding") or {}

        with bind_event_context(
            event_uid=events.event_uid(data),
            namespace=regarding.get("namespace"),
            reason=data.get("reason"),
        ):
            if not events.is_abnormal(data):
                logger.info("event_skipped_normal", subject=regarding.get("name"))
                return RelayOutcome(relayed=False)

            logs = self._collect_logs(data)
            payload = events.payload_from_event(data, self.common_labels, logs=logs)

            logger.info(
                "event_relaying",
                subject=payload.subject,
                kind=payload.kind,
                sinks=len(sink_specs),
            )
            results = self.dispatcher.dispatch(self.cluster_name, sink_specs, payload)
            outcome = RelayOutcome(relayed=True, results=results)
            if outcome.requeue_after is not None:
                logger.warning("event_relay_requeue", requeue_after=outcome.requeue_after)
            return outcome

    def _collect_logs(self, data: Mapping[str, Any]) -> str:
        if self.log_source is None or not events.is_pod_event(data):
            return ""
        regarding = data.get("regarding") or {}
        try:
            return self.log_source.read_logs(
                regarding.get("namespace") or "",
                regarding.get("name") or "",
                since=events.first_seen(data),
            )
        except Exception as e:
            logger.warning(
                "pod_logs_unavailable",
                pod=regarding.get("name"),
                error=str(e),
            )
            return ""

    def shutdown(self) -> None:
        """Signal every listener to stop and tear down all cached sinks."""
        logger.info("event_relay_shutting_down")
        self.shutdown_event.set()
        self.registry.close()
