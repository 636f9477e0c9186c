"""
In-memory ClusterClient.

Resources are kept as dictionaries keyed by ``(kind, namespace, name)``.
Pods and StatefulSets created through the client report ready immediately
unless ``auto_ready`` is False. Exec calls running ``mongosh`` are answered
by an attached FakeReplicaSet.
"""

from __future__ import annotations

import copy
from typing import Any

from clustershift.exceptions import KubernetesError
from clustershift.kube import ClusterClient, ExecResult, Resource, ResourceKind
from tests.fixtures.replica_set import FakeReplicaSet


def ready_status(kind: ResourceKind, resource: Resource) -> dict[str, Any] | None:
    if kind is ResourceKind.POD:
        return {"phase": "Running", "conditions": [{"type": "Ready", "status": "True"}]}
    if kind is ResourceKind.STATEFUL_SET:
        replicas = (resource.get("spec") or {}).get("replicas", 1)
        return {"replicas": replicas, "readyReplicas": replicas, "updatedReplicas": replicas}
    return None


class FakeCluster(ClusterClient):
    """
    ClusterClient over in-memory dictionaries.

    Args:
        name: Cluster identity.
        replica_set: Replica set answering exec calls, if any.
        auto_ready: Give created Pods and StatefulSets a ready status.
    """

    def __init__(
        self,
        name: str,
        replica_set: FakeReplicaSet | None = None,
        *,
        auto_ready: bool = True,
    ) -> None:
        super().__init__(name)
        self.replica_set = replica_set
        self.auto_ready = auto_ready
        self.resources: dict[tuple[ResourceKind, str | None, str], Resource] = {}
        self.created: list[tuple[ResourceKind, str | None, str]] = []
        self.deleted: list[tuple[ResourceKind, str | None, str]] = []
        self.exec_calls: list[tuple[str, str, str, list[str]]] = []

    # -- seeding ------------------------------------------------------------

    def add(self, kind: ResourceKind, resource: Resource) -> Resource:
        """Store a resource as if it already existed in the cluster."""
        metadata = resource.setdefault("metadata", {})
        namespace = metadata.get("namespace") if kind.namespaced else None
        resource.setdefault("kind", kind.value)
        self.resources[(kind, namespace, metadata["name"])] = resource
        return resource

    def get(self, kind: ResourceKind, name: str, namespace: str | None = None) -> Resource | None:
        return self.resources.get((kind, namespace if kind.namespaced else None, name))

    # -- ClusterClient ------------------------------------------------------

    def create_if_absent(self, kind: ResourceKind, namespace: str | None, body: Resource) -> bool:
        body = copy.deepcopy(body)
        metadata = body.setdefault("metadata", {})
        if kind.namespaced:
            metadata.setdefault("namespace", namespace)
        key = (kind, namespace if kind.namespaced else None, metadata["name"])
        if key in self.resources:
            return False
        if self.auto_ready and (status := ready_status(kind, body)) is not None:
            body["status"] = status
        body.setdefault("kind", kind.value)
        self.resources[key] = body
        self.created.append(key)
        return True

    def fetch(self, kind: ResourceKind, name: str, namespace: str | None = None) -> Resource:
        resource = self.get(kind, name, namespace)
        if resource is None:
            raise KubernetesError(
                f"{kind.value} {namespace}/{name} not found in {self.name}",
                kind=kind.value,
                name=name,
                namespace=namespace,
                status=404,
            )
        return copy.deepcopy(resource)

    def fetch_all(self, kind: ResourceKind, namespace: str | None = None) -> list[Resource]:
        return [
            copy.deepcopy(resource)
            for (k, ns, _), resource in self.resources.items()
            if k is kind and (namespace is None or ns == namespace)
        ]

    def delete(self, kind: ResourceKind, name: str, namespace: str | None = None) -> bool:
        key = (kind, namespace if kind.namespaced else None, name)
        if key not in self.resources:
            return False
        del self.resources[key]
        self.deleted.append(key)
        return True

    def patch_metadata(
        self,
        kind: ResourceKind,
        name: str,
        namespace: str | None = None,
        *,
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
    ) -> None:
        resource = self.get(kind, name, namespace)
        if resource is None:
            raise KubernetesError(
                f"{kind.value} {namespace}/{name} not found in {self.name}",
                kind=kind.value,
                name=name,
                namespace=namespace,
                status=404,
            )
        metadata = resource.setdefault("metadata", {})
        if labels:
            metadata.setdefault("labels", {}).update(labels)
        if annotations:
            metadata.setdefault("annotations", {}).update(annotations)

    def exec_in_workload(
        self,
        namespace: str,
        pod: str,
        container: str,
        command: list[str],
    ) -> ExecResult:
        self.exec_calls.append((namespace, pod, container, list(command)))
        if self.replica_set is None:
            return ExecResult(stdout="", stderr="MongoNetworkError: connection refused")
        return self.replica_set.respond(command)


__all__ = ["FakeCluster", "ready_status"]
