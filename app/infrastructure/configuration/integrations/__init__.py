"""Integration settings __init__ - exports all integration settings."""

from infrastructure.configuration.integrations.cluster import ClusterSettings
from infrastructure.configuration.integrations.kubernetes import KubernetesSettings
from infrastructure.configuration.integrations.openai import OpenAISettings

__all__ = [
    "ClusterSettings",
    "KubernetesSettings",
    "OpenAISettings",
]
