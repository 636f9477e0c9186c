"""
Kubernetes resource layer.

The migration engine depends on the narrow ClusterClient contract;
KubernetesCluster is the production implementation.
"""

from clustershift.kube.cluster import KubernetesCluster
from clustershift.kube.interface import (
    ClusterClient,
    Clusters,
    ExecResult,
    Resource,
    ResourceKind,
)
from clustershift.kube.readiness import is_pod_ready, is_stateful_set_ready
from clustershift.kube.resources import clean_for_creation

__all__ = [
    "ClusterClient",
    "Clusters",
    "ExecResult",
    "KubernetesCluster",
    "Resource",
    "ResourceKind",
    "clean_for_creation",
    "is_pod_ready",
    "is_stateful_set_ready",
]
