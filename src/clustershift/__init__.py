"""
clustershift - live migration of replicated databases between Kubernetes clusters.

A replica set is grown into the target cluster, the primary role is handed
over, and the origin members are removed, all while the set keeps serving.

Example:
    >>> from clustershift import MigrationConfig, MigrationDriver
    >>> from clustershift.kube import Clusters, KubernetesCluster
    >>> from clustershift.networking import get_networking_capability
    >>>
    >>> clusters = Clusters(
    ...     origin=KubernetesCluster.from_kubeconfig("origin", "origin.yaml"),
    ...     target=KubernetesCluster.from_kubeconfig("target", "target.yaml"),
    ... )
    >>> driver = MigrationDriver(clusters, get_networking_capability("linkerd"))
    >>> results = driver.run()
"""

from importlib.metadata import PackageNotFoundError, version

from clustershift.config import MigrationConfig, MongoCredentials
from clustershift.exceptions import (
    ClusterShiftError,
    ExecutionError,
    ParseError,
    StateError,
    WaitTimeoutError,
    WorkloadMigrationError,
)
from clustershift.mongo import MigrationDriver, MigrationResult, MigrationState
from clustershift.poller import wait_until

try:
    __version__ = version("clustershift")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "MigrationConfig",
    "MongoCredentials",
    "MigrationDriver",
    "MigrationResult",
    "MigrationState",
    "wait_until",
    "ClusterShiftError",
    "ExecutionError",
    "ParseError",
    "StateError",
    "WaitTimeoutError",
    "WorkloadMigrationError",
]
