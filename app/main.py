import json
import signal
import sys
import threading
from typing import IO, Optional

from dotenv import load_dotenv

from infrastructure.configuration import Settings, settings
from infrastructure.logging import configure_logging, get_module_logger
from infrastructure.sinks import (
    ConfigError,
    EventRelay,
    SinkDispatcher,
    SinkFactory,
    SinkRegistry,
    parse_sink_specs,
)
from integrations.kubernetes import PodLogError, PodLogReader
from integrations.openai import CompletionClient

logger = get_module_logger()

load_dotenv()


def build_relay(
    app_settings: Settings, shutdown_event: Optional[threading.Event] = None
) -> EventRelay:
    """Wire registry, factory, dispatcher and collaborators into an EventRelay."""
    shutdown_event = shutdown_event or threading.Event()

    try:
        completion_client = CompletionClient.from_settings(app_settings.openai)
    except ConfigError as e:
        logger.warning("completion_service_disabled", error=e.message)
        completion_client = None

    log_source = None
    if app_settings.kubernetes.POD_LOGS_ENABLED:
        try:
            log_source = PodLogReader.from_settings(app_settings.kubernetes)
        except PodLogError as e:
            logger.warning("pod_logs_disabled", error=str(e))

    registry = SinkRegistry(
        capacity=app_settings.sinks.SINK_CACHE_SIZE,
        default_ttl_seconds=app_settings.sinks.SINK_CACHE_TTL_SECONDS,
    )
    factory = SinkFactory.from_settings(
        registry,
        app_settings.sinks,
        completion_client=completion_client,
        shutdown_event=shutdown_event,
    )
    dispatcher = SinkDispatcher.from_settings(factory, app_settings.sinks)

    return EventRelay(
        dispatcher=dispatcher,
        registry=registry,
        cluster_name=app_settings.cluster.CLUSTER_NAME,
        common_labels=app_settings.cluster.common_labels,
        log_source=log_source,
        shutdown_event=shutdown_event,
    )


def relay_stream(relay: EventRelay, stream: IO[str]) -> int:
    """Relay newline delimited JSON documents of the form
    ``{"event": {...}, "sinks": [{...}, ...]}``.

    Returns:
        Number of events that were dispatched
    """
    relayed = 0
    for line_number, line in enumerate(stream, start=1):
        if relay.shutdown_event.is_set():
            break
        line = line.strip()
        if not line:
            continue
        try:
            document = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning("event_document_invalid", line=line_number, error=str(e))
            continue

        sink_specs = parse_sink_specs(document.get("sinks") or [])
        outcome = relay.handle_event(document.get("event") or {}, sink_specs)
        if outcome.relayed:
            relayed += 1
    return relayed


def list_configs():
    """List all configuration settings keys"""
    config_settings = {"settings": []}

    for key, value in settings.model_dump().items():
        if isinstance(value, dict):
            config_settings[key] = list(value.keys())
        else:
            config_settings["settings"].append({key: value})

    logger.info("configuration_initialized", base_settings=config_settings["settings"])
    for key, value in config_settings.items():
        if key != "settings":
            logger.info("configuration_loaded", config_setting=key, keys=value)


def main():
    """Main function to start the application."""
    configure_logging(log_level=settings.LOG_LEVEL)
    logger.info("application_startup", cluster_name=settings.cluster.CLUSTER_NAME)
    list_configs()

    relay = build_relay(settings)

    def handle_signal(signum, frame):
        logger.info("shutdown_signal_received", signal=signum)
        relay.shutdown_event.set()

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    try:
        relayed = relay_stream(relay, sys.stdin)
        logger.info("event_stream_finished", relayed=relayed)
    finally:
        relay.shutdown()


if __name__ == "__main__":
    main()
