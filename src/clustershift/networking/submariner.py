"""Submariner (Lighthouse) service discovery across clusters."""

from __future__ import annotations

import logging

from clustershift.kube import ClusterClient, ResourceKind
from clustershift.networking.base import NetworkingCapability, ToolIdentifier

logger = logging.getLogger(__name__)

CLUSTERSET_DOMAIN = "svc.clusterset.local"


class SubmarinerNetworking(NetworkingCapability):
    """
    Exports services with a Multi-Cluster Services ServiceExport.

    Lighthouse serves exported services under ``clusterset.local``; pods of a
    headless service are addressed per cluster as
    ``<pod>.<cluster>.<service>.<namespace>.svc.clusterset.local``.
    """

    @property
    def tool(self) -> ToolIdentifier:
        return ToolIdentifier.SUBMARINER

    def export_service(self, cluster: ClusterClient, namespace: str, service: str) -> None:
        # fail fast if the service itself is missing
        cluster.fetch(ResourceKind.SERVICE, service, namespace)
        created = cluster.create_if_absent(
            ResourceKind.SERVICE_EXPORT,
            namespace,
            {"metadata": {"name": service, "namespace": namespace}},
        )
        if created:
            logger.info("Exported service %s/%s from %s", namespace, service, cluster.name)
        else:
            logger.warning("Service %s/%s already exported from %s", namespace, service, cluster.name)

    def dns_name_for(self, service: str, namespace: str) -> str:
        return f"{service}.{namespace}.{CLUSTERSET_DOMAIN}"

    def headless_dns_name_for(
        self,
        pod: str,
        service: str,
        namespace: str,
        cluster_identity: str,
    ) -> str:
        return f"{pod}.{cluster_identity}.{service}.{namespace}.{CLUSTERSET_DOMAIN}"


__all__ = ["SubmarinerNetworking", "CLUSTERSET_DOMAIN"]
