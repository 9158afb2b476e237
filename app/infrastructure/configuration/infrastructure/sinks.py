"""Sink orchestration infrastructure settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class SinkSettings(InfrastructureSettings):
    """Sink cache, rate limiting and dispatch policy configuration.

    Environment Variables:
        SINK_CACHE_SIZE: Maximum number of live sink clients (default: 32)
        SINK_CACHE_TTL_SECONDS: Lifetime of a cached sink client (default: 3600s = 1h)
        SLACK_API_RATE_LIMIT_SECONDS: Pause after every chat message post (default: 1s)
        DISPATCH_REQUEUE_AFTER_SECONDS: Backoff suggested to the caller on failure (default: 5s)
        DISPATCH_FAIL_FAST: Stop at the first failing sink of an event (default: true)
        WEBHOOK_TIMEOUT_SECONDS: HTTP timeout for webhook based sinks (default: 10s)
        LISTENER_JOIN_TIMEOUT_SECONDS: Wait for a listener thread on teardown (default: 5s)

    Example:
        ```python
        from infrastructure.configuration import settings

        registry = SinkRegistry(
            capacity=settings.sinks.SINK_CACHE_SIZE,
            default_ttl_seconds=settings.sinks.SINK_CACHE_TTL_SECONDS,
        )
        ```
    """

    SINK_CACHE_SIZE: int = Field(default=32, alias="SINK_CACHE_SIZE", gt=0)
    SINK_CACHE_TTL_SECONDS: float = Field(
        default=3600, alias="SINK_CACHE_TTL_SECONDS", gt=0
    )
    SLACK_API_RATE_LIMIT_SECONDS: float = Field(
        default=1.0, alias="SLACK_API_RATE_LIMIT_SECONDS", ge=0
    )
    DISPATCH_REQUEUE_AFTER_SECONDS: int = Field(
        default=5, alias="DISPATCH_REQUEUE_AFTER_SECONDS", ge=0
    )
    DISPATCH_FAIL_FAST: bool = Field(default=True, alias="DISPATCH_FAIL_FAST")
    WEBHOOK_TIMEOUT_SECONDS: float = Field(
        default=10.0, alias="WEBHOOK_TIMEOUT_SECONDS", gt=0
    )
    LISTENER_JOIN_TIMEOUT_SECONDS: float = Field(
        default=5.0, alias="LISTENER_JOIN_TIMEOUT_SECONDS", ge=0
    )
