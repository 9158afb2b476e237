"""Cluster identity settings."""

from typing import Dict

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class ClusterSettings(IntegrationSettings):
    """Identity of the cluster whose events are relayed.

    Environment Variables:
        CLUSTER_NAME: Human readable cluster name, part of every sink identity
        COMMON_LABELS: JSON object of labels attached to every notification

    Example:
        ```python
        from infrastructure.configuration import settings

        labels = settings.cluster.common_labels
        # {"cluster_name": "prod-eu-1", "region": "eu-west-1"}
        ```
    """

    CLUSTER_NAME: str = Field(default="kubernetes", alias="CLUSTER_NAME")
    COMMON_LABELS: Dict[str, str] = Field(default_factory=dict, alias="COMMON_LABELS")

    @property
    def common_labels(self) -> Dict[str, str]:
        """Labels shared by all notifications, always carrying cluster_name."""
        labels = dict(self.COMMON_LABELS)
        labels.setdefault("cluster_name", self.CLUSTER_NAME)
        return labels
