"""Structured logging for the event relay, built on structlog.

Public API:
    - configure_logging(): Initialize logging at startup
    - get_module_logger(): Logger bound to the calling module
    - bind_event_context(): Context manager binding event identifiers
    - get_correlation_id(): Correlation ID of the event being processed
    - clear_event_context(): Drop all bound context (listener threads)

Processors:
    - add_app_info(), mask_sensitive_data(), truncate_large_values()

Example:
    from infrastructure.logging import bind_event_context, get_module_logger

    logger = get_module_logger()

    with bind_event_context(event_uid=uid, reason="BackOff"):
        logger.info("event_relaying")
"""

from infrastructure.logging.setup import configure_logging, get_module_logger
from infrastructure.logging.context import (
    bind_event_context,
    clear_event_context,
    get_correlation_id,
)
from infrastructure.logging.formatters import (
    SENSITIVE_PATTERNS,
    add_app_info,
    mask_sensitive_data,
    truncate_large_values,
)

__all__ = [
    "configure_logging",
    "get_module_logger",
    "bind_event_context",
    "clear_event_context",
    "get_correlation_id",
    "SENSITIVE_PATTERNS",
    "add_app_info",
    "mask_sensitive_data",
    "truncate_large_values",
]
