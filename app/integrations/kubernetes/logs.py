"""Pod log retrieval for event notifications.

Reads the log of the previous instance of a pod's first container, which is
where the output of a crashed container ends up after a restart.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Optional

import structlog
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from infrastructure.configuration.integrations import KubernetesSettings

logger = structlog.get_logger()


class PodLogError(Exception):
    """Pod logs could not be read."""


class PodLogReader:
    """Reads recent container logs through the Kubernetes API.

    Args:
        core_api: CoreV1Api instance
        tail_lines: Optional cap on the number of lines returned
        clock: Returns the current UTC time (testing)

    Example:
        reader = PodLogReader.from_settings(settings.kubernetes)
        logs = reader.read_logs("default", "api-7f", since=first_seen)
    """

    def __init__(
        self,
        core_api: Any,
        tail_lines: Optional[int] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.core_api = core_api
        self.tail_lines = tail_lines
        self._clock = clock

    @classmethod
    def from_settings(cls, kubernetes_settings: KubernetesSettings) -> "PodLogReader":
        """Load cluster credentials and build a reader.

        Raises:
            PodLogError: If no cluster configuration could be loaded
        """
        try:
            if kubernetes_settings.KUBERNETES_IN_CLUSTER:
                config.load_incluster_config()
            else:
                config.load_kube_config(config_file=kubernetes_settings.KUBECONFIG)
        except ConfigException as e:
            raise PodLogError(f"failed to load kubernetes configuration: {e}") from e
        return cls(client.CoreV1Api(), tail_lines=kubernetes_settings.POD_LOG_TAIL_LINES)

    def since_seconds(self, since: Optional[datetime]) -> Optional[int]:
        if since is None:
            return None
        if since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        elapsed = int((self._clock() - since).total_seconds())
        return max(elapsed, 1)

    def read_logs(self, namespace: str, pod: str, since: Optional[datetime] = None) -> str:
        """Previous-container logs of pod, with timestamps.

        Args:
            namespace: Pod namespace
            pod: Pod name
            since: Only return lines newer than this time

        Raises:
            PodLogError: If the pod or its logs could not be read
        """
        try:
            pod_object = self.core_api.read_namespaced_pod(name=pod, namespace=namespace)
            containers = pod_object.spec.containers or []
            if not containers:
                raise PodLogError(f"pod {namespace}/{pod} has no containers")

            kwargs = {
                "name": pod,
                "namespace": namespace,
                "container": containers[0].name,
                "previous": True,
                "timestamps": True,
            }
            since_seconds = self.since_seconds(since)
            if since_seconds is not None:
                kwargs["since_seconds"] = since_seconds
            if self.tail_lines is not None:
                kwargs["tail_lines"] = self.tail_lines

            logs = self.core_api.read_namespaced_pod_log(**kwargs)
        except ApiException as e:
            raise PodLogError(
                f"failed to read logs of {namespace}/{pod}: {e.status} {e.reason}"
            ) from e

        logger.debug("pod_logs_read", namespace=namespace, pod=pod, size=len(logs or ""))
        return logs or ""
