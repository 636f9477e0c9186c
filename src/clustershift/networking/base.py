"""
Cross-cluster networking capability.

A NetworkingCapability is chosen once, at configuration time, and passed by
reference to everything that needs it. It knows how to export a service to
the other cluster and how to name members so they resolve from both sides.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clustershift.kube import ClusterClient, Clusters


class ToolIdentifier(Enum):
    """Supported cross-cluster networking fabrics."""

    SUBMARINER = "submariner"
    SKUPPER = "skupper"
    LINKERD = "linkerd"


class NetworkingCapability(ABC):
    """
    Abstract cross-cluster networking fabric.

    Implementations:
        - SubmarinerNetworking: MCS ServiceExport, clusterset.local DNS
        - SkupperNetworking: service annotations, per-cluster address names
        - LinkerdNetworking: mirror label, namespace injection
    """

    @property
    @abstractmethod
    def tool(self) -> ToolIdentifier:
        """Which fabric this is."""
        pass

    @abstractmethod
    def export_service(self, cluster: ClusterClient, namespace: str, service: str) -> None:
        """
        Make a service in ``cluster`` visible to the other cluster.

        Exporting an already exported service succeeds.
        """
        pass

    @abstractmethod
    def dns_name_for(self, service: str, namespace: str) -> str:
        """Name a cluster-routed service so it resolves from both clusters."""
        pass

    @abstractmethod
    def headless_dns_name_for(
        self,
        pod: str,
        service: str,
        namespace: str,
        cluster_identity: str,
    ) -> str:
        """Name one pod behind a headless service in the given cluster."""
        pass

    def prepare_namespace(self, clusters: Clusters, namespace: str) -> None:
        """
        Prepare a workload namespace in both clusters before exporting.

        Most fabrics need nothing here.
        """
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(tool={self.tool.value!r})"


__all__ = ["ToolIdentifier", "NetworkingCapability"]
