"""Infrastructure settings __init__ - exports all infrastructure settings."""

from infrastructure.configuration.infrastructure.sinks import SinkSettings

__all__ = [
    "SinkSettings",
]
