"""Structlog processors used by configure_logging().

Every processor factory returns a ``(logger, method_name, event_dict)``
callable, so they can be unit tested without configuring structlog.
"""

from typing import Any, Callable, Dict, FrozenSet, Optional

Processor = Callable[[Any, str, Dict[str, Any]], Dict[str, Any]]

REDACTED = "***REDACTED***"

# Sink config snapshots and settings carry these; matched as substrings of keys
SENSITIVE_PATTERNS = frozenset(
    {
        "password",
        "secret",
        "token",
        "api_key",
        "apikey",
        "authorization",
        "credential",
        "webhook_url",
        "bearer",
    }
)


def add_app_info(app_name: str, app_version: str = "unknown") -> Processor:
    """Stamp every entry with the application name and version (git sha)."""

    def processor(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        event_dict["app_name"] = app_name
        event_dict["app_version"] = app_version
        return event_dict

    return processor


def mask_sensitive_data(
    mask_value: str = REDACTED,
    additional_patterns: Optional[FrozenSet[str]] = None,
) -> Processor:
    """Redact credentials before they reach the renderer.

    A key is sensitive when it contains one of the patterns, ignoring case.
    Mappings one level down (a logged config snapshot) are redacted the same
    way. ``None`` values are left alone.

    Example:
        processor = mask_sensitive_data(additional_patterns=frozenset({"signing"}))
    """
    patterns = SENSITIVE_PATTERNS | (additional_patterns or frozenset())

    def is_sensitive(key: Any) -> bool:
        lowered = str(key).lower()
        return any(pattern in lowered for pattern in patterns)

    def redact(key: Any, value: Any) -> Any:
        if value is not None and is_sensitive(key):
            return mask_value
        return value

    def processor(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        masked: Dict[str, Any] = {}
        for key, value in event_dict.items():
            if isinstance(value, dict) and not is_sensitive(key):
                masked[key] = {k: redact(k, v) for k, v in value.items()}
            else:
                masked[key] = redact(key, value)
        return masked

    return processor


def truncate_large_values(max_length: int = 500) -> Processor:
    """Cut string values longer than ``max_length`` (log excerpts, answers)."""

    def processor(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        for key, value in event_dict.items():
            if isinstance(value, str) and len(value) > max_length:
                event_dict[key] = f"{value[:max_length]}...[truncated, {len(value)} chars total]"
        return event_dict

    return processor
