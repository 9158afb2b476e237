"""Infrastructure configuration module - public API.

This module provides centralized configuration management for the event
relay using Pydantic BaseSettings with domain-based organization.

Exports:
    settings: Singleton Settings instance (main configuration object)
    Settings: Main settings class (for testing/overrides)
    SinkSettings: Sink orchestration settings class (for testing)

Example:
    ```python
    from infrastructure.configuration import settings

    cluster_name = settings.cluster.CLUSTER_NAME
    cache_size = settings.sinks.SINK_CACHE_SIZE
    model = settings.openai.OPENAI_MODEL
    ```
"""

from infrastructure.configuration.settings import Settings, settings
from infrastructure.configuration.infrastructure.sinks import SinkSettings

__all__ = ["Settings", "SinkSettings", "settings"]
