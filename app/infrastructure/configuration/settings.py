"""Top level settings object for the event relay."""

from typing import Dict, Type

from pydantic_settings import BaseSettings, SettingsConfigDict

from infrastructure.configuration.infrastructure import SinkSettings
from infrastructure.configuration.integrations import (
    ClusterSettings,
    KubernetesSettings,
    OpenAISettings,
)

# Section name -> settings class, each reading its own environment variables
SECTIONS: Dict[str, Type[BaseSettings]] = {
    "cluster": ClusterSettings,
    "kubernetes": KubernetesSettings,
    "openai": OpenAISettings,
    "sinks": SinkSettings,
}


class Settings(BaseSettings):
    """Relay configuration, one attribute per section.

    Sections not passed explicitly are built from the environment, so tests
    can override a single section:

        Settings(sinks=SinkSettings(SINK_CACHE_SIZE=2))

    Environment Variables:
        PREFIX: Deployment prefix, empty in production
        LOG_LEVEL: DEBUG, INFO, WARNING or ERROR
        GIT_SHA: Commit the image was built from, stamped on log entries
    """

    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    GIT_SHA: str = "Unknown"

    cluster: ClusterSettings
    kubernetes: KubernetesSettings
    openai: OpenAISettings
    sinks: SinkSettings

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    def __init__(self, **kwargs):
        for name, section_class in SECTIONS.items():
            kwargs.setdefault(name, section_class())
        super().__init__(**kwargs)

    @property
    def is_production(self) -> bool:
        """Production deployments run without a PREFIX."""
        return not self.PREFIX


settings = Settings()
