"""Cluster event normalization.

Converts ``events.k8s.io/v1`` Event objects into NotificationPayloads. Events
arrive either as mappings (watch streams, JSON fixtures) or as kubernetes
client model objects; model objects are serialized to their API mapping
form first, so field names are always the camelCase API names.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from kubernetes.client import ApiClient

from infrastructure.sinks.models import NotificationPayload

NORMAL_EVENT_TYPE = "Normal"
POD_KIND = "Pod"


def event_to_mapping(event: Any) -> Dict[str, Any]:
    """API mapping form of an event."""
    if isinstance(event, Mapping):
        return dict(event)
    return ApiClient().sanitize_for_serialization(event)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an API timestamp (RFC 3339 string or datetime) as aware UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_abnormal(event: Any) -> bool:
    """Every event whose type is not Normal deserves a notification."""
    return event_to_mapping(event).get("type") != NORMAL_EVENT_TYPE


def is_pod_event(event: Any) -> bool:
    regarding = event_to_mapping(event).get("regarding") or {}
    return regarding.get("kind") == POD_KIND


def event_uid(event: Any) -> Optional[str]:
    metadata = event_to_mapping(event).get("metadata") or {}
    return metadata.get("uid")


def first_seen(event: Any) -> Optional[datetime]:
    data = event_to_mapping(event)
    return parse_timestamp(data.get("deprecatedFirstTimestamp")) or parse_timestamp(
        data.get("eventTime")
    )


def last_seen(event: Any) -> Optional[datetime]:
    data = event_to_mapping(event)
    return parse_timestamp(data.get("deprecatedLastTimestamp")) or parse_timestamp(
        data.get("eventTime")
    )


def payload_from_event(
    event: Any,
    common_labels: Mapping[str, str],
    logs: str = "",
) -> NotificationPayload:
    """Build the notification payload of one event.

    Args:
        event: events.k8s.io/v1 Event, mapping or client model
        common_labels: Labels shared by every notification (cluster_name...)
        logs: Optional container log excerpt

    Returns:
        NotificationPayload with namespace/pod/kind/type/reason extra labels
    """
    data = event_to_mapping(event)
    regarding = data.get("regarding") or {}
    level = data.get("type") or ""
    reason = data.get("reason") or ""

    extra_labels = {
        "namespace": regarding.get("namespace") or "",
        "pod": regarding.get("name") or "",
        "kind": regarding.get("kind") or "",
        "type": level,
        "reason": reason,
    }
    return NotificationPayload(
        level=level,
        note=data.get("note") or "",
        common_labels=dict(common_labels),
        extra_labels=extra_labels,
        first_seen=first_seen(data),
        last_seen=last_seen(data),
        logs=logs,
    )
