"""Linkerd multicluster service mirroring."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from clustershift.kube import ClusterClient, ResourceKind
from clustershift.networking.base import NetworkingCapability, ToolIdentifier

if TYPE_CHECKING:
    from clustershift.kube import Clusters

logger = logging.getLogger(__name__)

LOCAL_DOMAIN = "svc.cluster.local"
EXPORT_LABEL = "mirror.linkerd.io/exported"
INJECT_ANNOTATION = "linkerd.io/inject"


class LinkerdNetworking(NetworkingCapability):
    """
    Exports services by labelling them for the Linkerd service mirror.

    Mirrored services are named ``<service>-<cluster>``. Workload namespaces
    are marked for proxy injection in both clusters before anything is
    exported, so that member traffic goes through the mesh.
    """

    @property
    def tool(self) -> ToolIdentifier:
        return ToolIdentifier.LINKERD

    def prepare_namespace(self, clusters: Clusters, namespace: str) -> None:
        for cluster in clusters:
            cluster.patch_metadata(
                ResourceKind.NAMESPACE,
                namespace,
                annotations={INJECT_ANNOTATION: "enabled"},
            )
            logger.info("Enabled Linkerd injection for namespace %s in %s", namespace, cluster.name)

    def export_service(self, cluster: ClusterClient, namespace: str, service: str) -> None:
        cluster.patch_metadata(
            ResourceKind.SERVICE,
            service,
            namespace,
            labels={EXPORT_LABEL: "true"},
        )
        logger.info("Exported service %s/%s from %s to the Linkerd mirror", namespace, service, cluster.name)

    def dns_name_for(self, service: str, namespace: str) -> str:
        return f"{service}.{namespace}.{LOCAL_DOMAIN}"

    def headless_dns_name_for(
        self,
        pod: str,
        service: str,
        namespace: str,
        cluster_identity: str,
    ) -> str:
        return f"{pod}.{service}-{cluster_identity}.{namespace}.{LOCAL_DOMAIN}"


__all__ = ["LinkerdNetworking", "EXPORT_LABEL", "INJECT_ANNOTATION"]
