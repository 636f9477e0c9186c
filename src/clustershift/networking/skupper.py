"""Skupper application network."""

from __future__ import annotations

import logging

from clustershift.kube import ClusterClient, ResourceKind
from clustershift.networking.base import NetworkingCapability, ToolIdentifier

logger = logging.getLogger(__name__)

LOCAL_DOMAIN = "svc.cluster.local"
PROXY_ANNOTATION = "skupper.io/proxy"
ADDRESS_ANNOTATION = "skupper.io/address"


class SkupperNetworking(NetworkingCapability):
    """
    Exports services by annotating them for the Skupper service controller.

    The exported address is ``<service>-<cluster>``, so the same service from
    each cluster appears under its own name on the other side.
    """

    @property
    def tool(self) -> ToolIdentifier:
        return ToolIdentifier.SKUPPER

    def export_service(self, cluster: ClusterClient, namespace: str, service: str) -> None:
        cluster.patch_metadata(
            ResourceKind.SERVICE,
            service,
            namespace,
            annotations={
                PROXY_ANNOTATION: "tcp",
                ADDRESS_ANNOTATION: f"{service}-{cluster.name}",
            },
        )
        logger.info("Exposed service %s/%s from %s through Skupper", namespace, service, cluster.name)

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


__all__ = ["SkupperNetworking", "PROXY_ANNOTATION", "ADDRESS_ANNOTATION"]
