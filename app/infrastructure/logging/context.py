"""Event scoped logging context.

While one cluster event (or one Slack interaction) is processed, its
identifiers are bound through ``structlog.contextvars`` so every entry
logged along the way carries them.
"""

import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import structlog


@contextmanager
def bind_event_context(
    correlation_id: Optional[str] = None,
    event_uid: Optional[str] = None,
    namespace: Optional[str] = None,
    reason: Optional[str] = None,
    **extra_context: Any,
) -> Iterator[None]:
    """Bind event identifiers for the duration of the block.

    A correlation ID is generated when none is given. ``None`` values are
    not bound. Everything bound here is unbound on exit, including on error.

    Example:
        with bind_event_context(event_uid=uid, namespace="default", reason="BackOff"):
            dispatcher.dispatch(scope, specs, payload)
    """
    context: Dict[str, Any] = {"correlation_id": correlation_id or str(uuid.uuid4())}
    optional = {"event_uid": event_uid, "namespace": namespace, "reason": reason}
    context.update({key: value for key, value in optional.items() if value is not None})
    context.update(extra_context)

    structlog.contextvars.bind_contextvars(**context)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*context)


def get_correlation_id() -> Optional[str]:
    return structlog.contextvars.get_contextvars().get("correlation_id")


def clear_event_context() -> None:
    """Drop all bound context.

    Listener threads call this before each interaction so nothing leaks
    from the previous request.
    """
    structlog.contextvars.clear_contextvars()
