"""
Shared test fixtures for clustershift.

- FakeReplicaSet: interprets administrative shell commands in memory
- FakeCluster: in-memory ClusterClient routing mongosh exec calls
- FakeClock: clock that advances only when slept on
- Manifest builders for StatefulSets and Services

Usage:
    from tests.fixtures import FakeCluster, FakeReplicaSet, local_hosts
"""

from tests.fixtures.clock import FakeClock
from tests.fixtures.cluster import FakeCluster, ready_status
from tests.fixtures.replica_set import FakeMember, FakeReplicaSet
from tests.fixtures.workloads import (
    LABELS,
    NAMESPACE,
    WORKLOAD,
    local_hosts,
    service_manifest,
    stateful_set_manifest,
)

__all__ = [
    "FakeClock",
    "FakeCluster",
    "FakeMember",
    "FakeReplicaSet",
    "LABELS",
    "NAMESPACE",
    "WORKLOAD",
    "local_hosts",
    "ready_status",
    "service_manifest",
    "stateful_set_manifest",
]
