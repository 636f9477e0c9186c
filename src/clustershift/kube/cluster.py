"""
ClusterClient backed by the official kubernetes Python client.

Each ResourceKind maps to one row of typed API calls; there is no reflection
over kinds. Results are converted to camelCase dictionaries with
``ApiClient.sanitize_for_serialization`` so that the rest of clustershift
never depends on the client's generated model classes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.stream import stream
from urllib3.exceptions import HTTPError
from websocket import WebSocketException

from clustershift.exceptions import KubernetesError
from clustershift.kube.interface import ClusterClient, ExecResult, Resource, ResourceKind

logger = logging.getLogger(__name__)

SERVICE_EXPORT_GROUP = "multicluster.x-k8s.io"
SERVICE_EXPORT_VERSION = "v1alpha1"
SERVICE_EXPORT_PLURAL = "serviceexports"

API_VERSIONS: dict[ResourceKind, str] = {
    ResourceKind.SERVICE: "v1",
    ResourceKind.STATEFUL_SET: "apps/v1",
    ResourceKind.POD: "v1",
    ResourceKind.NAMESPACE: "v1",
    ResourceKind.SECRET: "v1",
    ResourceKind.CONFIG_MAP: "v1",
    ResourceKind.SERVICE_EXPORT: f"{SERVICE_EXPORT_GROUP}/{SERVICE_EXPORT_VERSION}",
}


@dataclass(frozen=True)
class _KindOps:
    """Typed API calls for one resource kind, with namespace-first signatures."""

    create: Callable[[str | None, Resource], Any]
    read: Callable[[str, str | None], Any]
    list_in: Callable[[str], Any]
    list_all: Callable[[], Any]
    delete: Callable[[str, str | None], Any]
    patch: Callable[[str, str | None, Resource], Any]


class KubernetesCluster(ClusterClient):
    """
    A live cluster reached through a kubeconfig.

    Args:
        name: Cluster identity (e.g. "origin", "target").
        api_client: Configured ``kubernetes.client.ApiClient``.
        core_api: CoreV1Api override (tests).
        apps_api: AppsV1Api override (tests).
        custom_api: CustomObjectsApi override (tests).

    Example:
        >>> origin = KubernetesCluster.from_kubeconfig("origin", "~/.kube/origin.yaml")
        >>> origin.fetch(ResourceKind.SERVICE, "mongo", "db")["spec"]["clusterIP"]
        'None'
    """

    def __init__(
        self,
        name: str,
        api_client: client.ApiClient,
        *,
        core_api: client.CoreV1Api | None = None,
        apps_api: client.AppsV1Api | None = None,
        custom_api: client.CustomObjectsApi | None = None,
    ) -> None:
        super().__init__(name)
        self._api_client = api_client
        self._core = core_api or client.CoreV1Api(api_client)
        self._apps = apps_api or client.AppsV1Api(api_client)
        self._custom = custom_api or client.CustomObjectsApi(api_client)
        self._ops = self._build_ops()

    @classmethod
    def from_kubeconfig(
        cls,
        name: str,
        kubeconfig: str,
        context: str | None = None,
    ) -> KubernetesCluster:
        """Create a cluster client from a kubeconfig file."""
        try:
            api_client = config.new_client_from_config(config_file=kubeconfig, context=context)
        except (config.ConfigException, OSError) as exc:
            raise KubernetesError(
                f"Cannot load kubeconfig {kubeconfig} for cluster {name}: {exc}",
                kind="Kubeconfig",
                name=kubeconfig,
            ) from exc
        logger.debug("Loaded kubeconfig %s for cluster %s", kubeconfig, name)
        return cls(name, api_client)

    def _build_ops(self) -> dict[ResourceKind, _KindOps]:
        core, apps, custom = self._core, self._apps, self._custom
        export = (SERVICE_EXPORT_GROUP, SERVICE_EXPORT_VERSION)
        return {
            ResourceKind.SERVICE: _KindOps(
                create=lambda ns, body: core.create_namespaced_service(ns, body),
                read=lambda name, ns: core.read_namespaced_service(name, ns),
                list_in=lambda ns: core.list_namespaced_service(ns),
                list_all=lambda: core.list_service_for_all_namespaces(),
                delete=lambda name, ns: core.delete_namespaced_service(name, ns),
                patch=lambda name, ns, body: core.patch_namespaced_service(name, ns, body),
            ),
            ResourceKind.STATEFUL_SET: _KindOps(
                create=lambda ns, body: apps.create_namespaced_stateful_set(ns, body),
                read=lambda name, ns: apps.read_namespaced_stateful_set(name, ns),
                list_in=lambda ns: apps.list_namespaced_stateful_set(ns),
                list_all=lambda: apps.list_stateful_set_for_all_namespaces(),
                delete=lambda name, ns: apps.delete_namespaced_stateful_set(name, ns),
                patch=lambda name, ns, body: apps.patch_namespaced_stateful_set(name, ns, body),
            ),
            ResourceKind.POD: _KindOps(
                create=lambda ns, body: core.create_namespaced_pod(ns, body),
                read=lambda name, ns: core.read_namespaced_pod(name, ns),
                list_in=lambda ns: core.list_namespaced_pod(ns),
                list_all=lambda: core.list_pod_for_all_namespaces(),
                delete=lambda name, ns: core.delete_namespaced_pod(name, ns),
                patch=lambda name, ns, body: core.patch_namespaced_pod(name, ns, body),
            ),
            ResourceKind.NAMESPACE: _KindOps(
                create=lambda ns, body: core.create_namespace(body),
                read=lambda name, ns: core.read_namespace(name),
                list_in=lambda ns: core.list_namespace(),
                list_all=lambda: core.list_namespace(),
                delete=lambda name, ns: core.delete_namespace(name),
                patch=lambda name, ns, body: core.patch_namespace(name, body),
            ),
            ResourceKind.SECRET: _KindOps(
                create=lambda ns, body: core.create_namespaced_secret(ns, body),
                read=lambda name, ns: core.read_namespaced_secret(name, ns),
                list_in=lambda ns: core.list_namespaced_secret(ns),
                list_all=lambda: core.list_secret_for_all_namespaces(),
                delete=lambda name, ns: core.delete_namespaced_secret(name, ns),
                patch=lambda name, ns, body: core.patch_namespaced_secret(name, ns, body),
            ),
            ResourceKind.CONFIG_MAP: _KindOps(
                create=lambda ns, body: core.create_namespaced_config_map(ns, body),
                read=lambda name, ns: core.read_namespaced_config_map(name, ns),
                list_in=lambda ns: core.list_namespaced_config_map(ns),
                list_all=lambda: core.list_config_map_for_all_namespaces(),
                delete=lambda name, ns: core.delete_namespaced_config_map(name, ns),
                patch=lambda name, ns, body: core.patch_namespaced_config_map(name, ns, body),
            ),
            ResourceKind.SERVICE_EXPORT: _KindOps(
                create=lambda ns, body: custom.create_namespaced_custom_object(
                    *export, ns, SERVICE_EXPORT_PLURAL, body
                ),
                read=lambda name, ns: custom.get_namespaced_custom_object(
                    *export, ns, SERVICE_EXPORT_PLURAL, name
                ),
                list_in=lambda ns: custom.list_namespaced_custom_object(
                    *export, ns, SERVICE_EXPORT_PLURAL
                ),
                list_all=lambda: custom.list_cluster_custom_object(*export, SERVICE_EXPORT_PLURAL),
                delete=lambda name, ns: custom.delete_namespaced_custom_object(
                    *export, ns, SERVICE_EXPORT_PLURAL, name
                ),
                patch=lambda name, ns, body: custom.patch_namespaced_custom_object(
                    *export, ns, SERVICE_EXPORT_PLURAL, name, body
                ),
            ),
        }

    def _to_dict(self, kind: ResourceKind, obj: Any) -> Resource:
        data: Resource = self._api_client.sanitize_for_serialization(obj)
        # list items come back without kind/apiVersion
        data.setdefault("kind", kind.value)
        data.setdefault("apiVersion", API_VERSIONS[kind])
        return data

    def _error(
        self,
        action: str,
        kind: ResourceKind,
        name: str | None,
        namespace: str | None,
        exc: ApiException,
    ) -> KubernetesError:
        return KubernetesError(
            f"Failed to {action} {kind.value} {namespace}/{name} in {self.name}: "
            f"{exc.status} {exc.reason}",
            kind=kind.value,
            name=name,
            namespace=namespace,
            status=exc.status,
        )

    def create_if_absent(self, kind: ResourceKind, namespace: str | None, body: Resource) -> bool:
        name = (body.get("metadata") or {}).get("name")
        body = {"apiVersion": API_VERSIONS[kind], "kind": kind.value, **body}
        try:
            self._ops[kind].create(namespace, body)
        except ApiException as exc:
            if exc.status == 409:
                logger.warning(
                    "%s %s/%s already exists in %s", kind.value, namespace, name, self.name
                )
                return False
            raise self._error("create", kind, name, namespace, exc) from exc
        logger.info("Created %s %s/%s in %s", kind.value, namespace, name, self.name)
        return True

    def fetch(self, kind: ResourceKind, name: str, namespace: str | None = None) -> Resource:
        try:
            obj = self._ops[kind].read(name, namespace)
        except ApiException as exc:
            raise self._error("fetch", kind, name, namespace, exc) from exc
        return self._to_dict(kind, obj)

    def fetch_all(self, kind: ResourceKind, namespace: str | None = None) -> list[Resource]:
        ops = self._ops[kind]
        try:
            result = ops.list_in(namespace) if namespace else ops.list_all()
        except ApiException as exc:
            raise self._error("list", kind, None, namespace, exc) from exc
        items = result["items"] if isinstance(result, dict) else result.items
        return [self._to_dict(kind, item) for item in items]

    def delete(self, kind: ResourceKind, name: str, namespace: str | None = None) -> bool:
        try:
            self._ops[kind].delete(name, namespace)
        except ApiException as exc:
            if exc.status == 404:
                logger.debug("%s %s/%s already gone from %s", kind.value, namespace, name, self.name)
                return False
            raise self._error("delete", kind, name, namespace, exc) from exc
        logger.info("Deleted %s %s/%s from %s", kind.value, namespace, name, self.name)
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
        metadata: dict[str, dict[str, str]] = {}
        if labels:
            metadata["labels"] = labels
        if annotations:
            metadata["annotations"] = annotations
        if not metadata:
            return
        try:
            self._ops[kind].patch(name, namespace, {"metadata": metadata})
        except ApiException as exc:
            raise self._error("patch", kind, name, namespace, exc) from exc
        logger.info(
            "Patched %s %s/%s in %s with %s", kind.value, namespace, name, self.name, metadata
        )

    def exec_in_workload(
        self,
        namespace: str,
        pod: str,
        container: str,
        command: list[str],
    ) -> ExecResult:
        stdout: list[str] = []
        stderr: list[str] = []
        try:
            resp = stream(
                self._core.connect_get_namespaced_pod_exec,
                pod,
                namespace,
                container=container,
                command=command,
                stderr=True,
                stdin=False,
                stdout=True,
                tty=False,
                _preload_content=False,
            )
            try:
                while resp.is_open():
                    resp.update(timeout=1)
                    if resp.peek_stdout():
                        stdout.append(resp.read_stdout())
                    if resp.peek_stderr():
                        stderr.append(resp.read_stderr())
            finally:
                resp.close()
        except ApiException as exc:
            raise self._error("exec in", ResourceKind.POD, pod, namespace, exc) from exc
        except (OSError, WebSocketException, HTTPError) as exc:
            raise KubernetesError(
                f"Exec in Pod {namespace}/{pod} in {self.name} lost its connection: "
                f"{type(exc).__name__}: {exc}",
                kind=ResourceKind.POD.value,
                name=pod,
                namespace=namespace,
            ) from exc

        return ExecResult(stdout="".join(stdout), stderr="".join(stderr))


__all__ = [
    "KubernetesCluster",
    "API_VERSIONS",
    "SERVICE_EXPORT_GROUP",
    "SERVICE_EXPORT_VERSION",
    "SERVICE_EXPORT_PLURAL",
]
