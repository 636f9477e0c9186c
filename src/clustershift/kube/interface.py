"""
Resource layer contract.

The migration engine talks to a cluster only through ClusterClient: create a
resource if it is absent, fetch one or all resources of a kind, label or
annotate one, delete one, exec a command inside a pod and wait for a
resource to become ready. Resources travel as plain dictionaries in the
camelCase wire form the API server uses.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

from clustershift.exceptions import KubernetesError
from clustershift.kube.readiness import is_pod_ready, is_stateful_set_ready
from clustershift.poller import wait_until

logger = logging.getLogger(__name__)

Resource = dict[str, Any]


class ResourceKind(Enum):
    """
    Closed set of resource kinds the engine manipulates.

    The value is the Kubernetes ``kind`` name.
    """

    SERVICE = "Service"
    STATEFUL_SET = "StatefulSet"
    POD = "Pod"
    NAMESPACE = "Namespace"
    SECRET = "Secret"
    CONFIG_MAP = "ConfigMap"
    SERVICE_EXPORT = "ServiceExport"

    @property
    def namespaced(self) -> bool:
        return self is not ResourceKind.NAMESPACE


_READINESS: dict[ResourceKind, Callable[[Resource], bool]] = {
    ResourceKind.POD: is_pod_ready,
    ResourceKind.STATEFUL_SET: is_stateful_set_ready,
}


@dataclass(frozen=True)
class ExecResult:
    """Output streams of a command executed inside a container."""

    stdout: str
    stderr: str


class ClusterClient(ABC):
    """
    Abstract access to one Kubernetes cluster.

    Implementations:
        - KubernetesCluster: backed by the official kubernetes client
        - FakeCluster (tests): in-memory dictionaries

    Every method raises KubernetesError when the API server rejects the call.
    """

    def __init__(self, name: str) -> None:
        self._name = name

    @property
    def name(self) -> str:
        """Cluster identity used when deriving cross-cluster DNS names."""
        return self._name

    @abstractmethod
    def create_if_absent(self, kind: ResourceKind, namespace: str | None, body: Resource) -> bool:
        """
        Create a resource unless one with the same name exists.

        Returns:
            True if the resource was created, False if it already existed.
        """
        pass

    @abstractmethod
    def fetch(self, kind: ResourceKind, name: str, namespace: str | None = None) -> Resource:
        """
        Fetch one resource.

        Raises:
            KubernetesError: With status 404 if the resource does not exist.
        """
        pass

    @abstractmethod
    def fetch_all(self, kind: ResourceKind, namespace: str | None = None) -> list[Resource]:
        """Fetch every resource of a kind, in one namespace or all of them."""
        pass

    @abstractmethod
    def delete(self, kind: ResourceKind, name: str, namespace: str | None = None) -> bool:
        """
        Delete a resource.

        Returns:
            True if it was deleted, False if it did not exist.
        """
        pass

    @abstractmethod
    def patch_metadata(
        self,
        kind: ResourceKind,
        name: str,
        namespace: str | None = None,
        *,
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
    ) -> None:
        """Merge labels and annotations into a resource's metadata."""
        pass

    @abstractmethod
    def exec_in_workload(
        self,
        namespace: str,
        pod: str,
        container: str,
        command: list[str],
    ) -> ExecResult:
        """Run a command inside a container and collect both output streams."""
        pass

    def wait_until_ready(
        self,
        kind: ResourceKind,
        name: str,
        namespace: str | None,
        *,
        timeout: float,
        interval: float = 2.0,
        sleep: Callable[[float], None] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """
        Block until a Pod or StatefulSet reports ready.

        A resource that does not exist yet counts as not ready.

        Raises:
            WaitTimeoutError: If the resource is not ready within ``timeout``.
            KubernetesError: On any API failure other than 404.
            ValueError: If ``kind`` has no readiness notion.
        """
        if kind not in _READINESS:
            raise ValueError(f"No readiness check for {kind.value}")
        is_ready = _READINESS[kind]

        def ready() -> bool:
            try:
                resource = self.fetch(kind, name, namespace)
            except KubernetesError as exc:
                if exc.status == 404:
                    return False
                raise
            return is_ready(resource)

        kwargs: dict[str, Any] = {}
        if sleep is not None:
            kwargs["sleep"] = sleep
        if clock is not None:
            kwargs["clock"] = clock
        logger.info("Waiting for %s %s/%s in %s to be ready", kind.value, namespace, name, self.name)
        wait_until(
            ready,
            interval=interval,
            timeout=timeout,
            description=f"{kind.value} {namespace}/{name} in {self.name} to be ready",
            **kwargs,
        )


@dataclass(frozen=True)
class Clusters:
    """The origin and target clusters of a migration."""

    origin: ClusterClient
    target: ClusterClient

    def __iter__(self) -> Iterator[ClusterClient]:
        yield self.origin
        yield self.target


__all__ = [
    "ResourceKind",
    "Resource",
    "ExecResult",
    "ClusterClient",
    "Clusters",
]
