"""Sink client abstract base class.

All channel implementations (Slack, Mattermost, Teams) implement this
interface. A sink delivers a NotificationPayload to exactly one configured
channel and owns whatever connections it needs to do so.
"""

import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, ClassVar, Optional, Type

from infrastructure.sinks.listener import ListenerHandle
from infrastructure.sinks.models import NotificationPayload, SinkType


def format_timestamp(value: Optional[datetime]) -> str:
    """Render an event timestamp for humans."""
    if value is None:
        return "unknown"
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


class Sink(ABC):
    """Abstract base class for notification sinks.

    Lifecycle, driven by SinkFactory:
        1. ``validate_config(config)`` - classmethod, raises ConfigError
        2. ``open()`` - create API clients / sessions
        3. ``start(shutdown_event)`` - optional background listener
        4. ``forward_event(payload)`` - any number of times
        5. ``close()`` - release everything, cancel the listener

    Every successful delivery is followed by a fixed pause of
    ``rate_limit_seconds`` to stay under the channel API rate limit.

    Example Implementation:
        class EchoSink(Sink):
            sink_type = SinkType.SLACK
            config_class = SlackSinkConfig

            def forward_event(self, payload):
                print(payload.note)
                self._pace()
    """

    sink_type: ClassVar[SinkType]
    config_class: ClassVar[Type[Any]]

    def __init__(
        self,
        config: Any,
        rate_limit_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.rate_limit_seconds = rate_limit_seconds
        self._sleep = sleep
        self._listener: Optional[ListenerHandle] = None
        self._closed = False

    @classmethod
    @abstractmethod
    def validate_config(cls, config: Any) -> None:
        """Check channel specific credential rules.

        Raises:
            ConfigError: If the configuration can not produce a working sink
        """
        pass

    def open(self) -> None:
        """Create API clients. Default: nothing to open."""
        return None

    def start(self, shutdown_event: Optional[threading.Event] = None) -> Optional[ListenerHandle]:
        """Start the background listener, if the channel has one.

        Args:
            shutdown_event: Process-wide cancellation signal

        Returns:
            The listener handle, owned by the caller, or None
        """
        return None

    @abstractmethod
    def forward_event(self, payload: NotificationPayload) -> None:
        """Deliver the payload to the configured channel.

        Raises:
            DeliveryError: If the channel API call failed
        """
        pass

    def close(self) -> None:
        """Cancel the listener (if any) and release connections. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._listener is not None:
            self._listener.cancel()

    @property
    def closed(self) -> bool:
        return self._closed

    def _pace(self) -> None:
        if self.rate_limit_seconds > 0:
            self._sleep(self.rate_limit_seconds)
