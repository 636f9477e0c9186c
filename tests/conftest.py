"""
Shared pytest fixtures for the clustershift tests.

- replica_set: a three-member FakeReplicaSet using workload-local hosts
- origin / target: FakeClusters sharing that replica set
- clusters: the Clusters pair
- config: MigrationConfig with no waiting between polls
- clock: FakeClock for deterministic deadlines
"""

from __future__ import annotations

import pytest

from clustershift.config import MigrationConfig
from clustershift.kube import Clusters, ResourceKind
from clustershift.observability import MockTracer
from tests.fixtures import (
    NAMESPACE,
    FakeClock,
    FakeCluster,
    FakeReplicaSet,
    local_hosts,
    service_manifest,
    stateful_set_manifest,
)


@pytest.fixture
def replica_set() -> FakeReplicaSet:
    return FakeReplicaSet(local_hosts(3))


@pytest.fixture
def origin(replica_set: FakeReplicaSet) -> FakeCluster:
    cluster = FakeCluster("origin", replica_set)
    cluster.add(ResourceKind.NAMESPACE, {"metadata": {"name": NAMESPACE}})
    cluster.add(ResourceKind.STATEFUL_SET, stateful_set_manifest())
    cluster.add(ResourceKind.SERVICE, service_manifest())
    return cluster


@pytest.fixture
def target(replica_set: FakeReplicaSet) -> FakeCluster:
    return FakeCluster("target", replica_set)


@pytest.fixture
def clusters(origin: FakeCluster, target: FakeCluster) -> Clusters:
    return Clusters(origin=origin, target=target)


@pytest.fixture
def config() -> MigrationConfig:
    return MigrationConfig(
        poll_interval=1.0,
        secondary_timeout=60,
        election_timeout=60,
        workload_ready_timeout=60,
        client_pod_ready_timeout=60,
        resource_poll_interval=1.0,
        networking_settle_seconds=0,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tracer() -> MockTracer:
    return MockTracer()
