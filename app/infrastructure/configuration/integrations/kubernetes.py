"""Kubernetes API settings."""

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class KubernetesSettings(IntegrationSettings):
    """Kubernetes API access for pod log retrieval.

    Environment Variables:
        KUBERNETES_IN_CLUSTER: Use the service account mounted in the pod
        KUBECONFIG: Path to a kubeconfig file when running out of cluster
        POD_LOGS_ENABLED: Attach container logs to pod notifications
        POD_LOG_TAIL_LINES: Optional cap on the number of log lines fetched
    """

    KUBERNETES_IN_CLUSTER: bool = Field(default=True, alias="KUBERNETES_IN_CLUSTER")
    KUBECONFIG: str | None = Field(default=None, alias="KUBECONFIG")
    POD_LOGS_ENABLED: bool = Field(default=True, alias="POD_LOGS_ENABLED")
    POD_LOG_TAIL_LINES: int | None = Field(default=None, alias="POD_LOG_TAIL_LINES")
