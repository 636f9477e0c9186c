"""
Unit tests for MigrationContextBuilder.
"""

import pytest

from clustershift.exceptions import StateError
from clustershift.kube import Clusters, ResourceKind
from clustershift.mongo.admin import ReplicaSetAdmin
from clustershift.mongo.context import MigrationContextBuilder
from clustershift.mongo.discovery import workload_from_stateful_set
from clustershift.mongo.models import ServiceTopology
from clustershift.networking import SkupperNetworking, SubmarinerNetworking
from clustershift.observability import MockTracer
from tests.fixtures import (
    FakeCluster,
    FakeReplicaSet,
    local_hosts,
    service_manifest,
    stateful_set_manifest,
)

LOCAL = local_hosts(3)
RENAMED = [f"mongo-{i}.origin.mongo.db.svc.clusterset.local:27017" for i in range(3)]
TARGET = [f"mongo-{i}.target.mongo.db.svc.clusterset.local:27017" for i in range(3)]


@pytest.fixture
def workload():
    return workload_from_stateful_set(stateful_set_manifest(), "mongo:7.0")


def _builder(replica_set, *services, networking=None, tracer=None):
    origin = FakeCluster("origin", replica_set)
    for service in services:
        origin.add(ResourceKind.SERVICE, service)
    clusters = Clusters(origin=origin, target=FakeCluster("target", replica_set))
    return MigrationContextBuilder(
        clusters,
        networking or SubmarinerNetworking(),
        ReplicaSetAdmin(replica_set, enable_tracing=False),
        tracer=tracer or MockTracer(),
    )


class TestFindService:
    """Tests for find_service."""

    def test_selector_must_match(self, workload):
        builder = _builder(
            FakeReplicaSet(LOCAL),
            service_manifest("other", selector={"app": "other"}),
            service_manifest("mongo-svc"),
        )
        assert builder.find_service(workload).name == "mongo-svc"

    def test_empty_selector_never_matches(self, workload):
        builder = _builder(FakeReplicaSet(LOCAL), service_manifest("any", selector={}))
        with pytest.raises(StateError):
            builder.find_service(workload)

    def test_no_service(self, workload):
        with pytest.raises(StateError) as exc_info:
            _builder(FakeReplicaSet(LOCAL)).find_service(workload)
        assert exc_info.value.workload == "db/mongo"

    def test_services_in_other_namespaces_ignored(self, workload):
        builder = _builder(FakeReplicaSet(LOCAL), service_manifest(namespace="elsewhere"))
        with pytest.raises(StateError):
            builder.find_service(workload)


class TestBuild:
    """Tests for build."""

    def test_headless(self, workload):
        replica_set = FakeReplicaSet(LOCAL)
        tracer = MockTracer()
        context = _builder(replica_set, service_manifest(), tracer=tracer).build(workload)

        assert context.primary_host == LOCAL[0]
        assert context.origin_hosts == tuple(LOCAL)
        assert context.rewritten_origin_hosts == tuple(RENAMED)
        assert context.target_hosts == tuple(TARGET)
        assert context.service.topology is ServiceTopology.HEADLESS
        assert context.check_host == TARGET[0]
        assert tracer.span_names == ["clustershift.context.build"]

    def test_queries_through_service_address(self, workload):
        replica_set = FakeReplicaSet(LOCAL)
        _builder(replica_set, service_manifest()).build(workload)
        assert {host for host, _ in replica_set.commands} == {"mongo.db.svc.cluster.local:27017"}

    def test_builds_without_mutating(self, workload):
        replica_set = FakeReplicaSet(LOCAL)
        _builder(replica_set, service_manifest()).build(workload)
        assert replica_set.events == []

    def test_cluster_routed(self, workload):
        replica_set = FakeReplicaSet(LOCAL)
        context = _builder(replica_set, service_manifest(headless=False)).build(workload)
        assert context.rewritten_origin_hosts == ("mongo.db.svc.clusterset.local:27017",) * 3
        assert context.target_hosts == context.rewritten_origin_hosts

    def test_skupper_names(self, workload):
        replica_set = FakeReplicaSet(LOCAL)
        context = _builder(
            replica_set, service_manifest(), networking=SkupperNetworking()
        ).build(workload)
        assert context.rewritten_origin_hosts[1] == "mongo-1.mongo-origin.db.svc.cluster.local:27017"
        assert context.target_hosts[1] == "mongo-1.mongo-target.db.svc.cluster.local:27017"

    def test_no_primary(self, workload):
        replica_set = FakeReplicaSet(LOCAL)
        replica_set.member(LOCAL[0]).state = "SECONDARY"
        with pytest.raises(StateError):
            _builder(replica_set, service_manifest()).build(workload)

    def test_member_not_workload_local(self, workload):
        replica_set = FakeReplicaSet(["localhost:27017"])
        with pytest.raises(StateError):
            _builder(replica_set, service_manifest()).build(workload)


class TestBuildAfterInterruptedRun:
    """A re-run plans the same migration as the first attempt."""

    def test_renamed_members(self, workload):
        replica_set = FakeReplicaSet(RENAMED)
        context = _builder(replica_set, service_manifest()).build(workload)
        assert context.origin_hosts == tuple(LOCAL)
        assert context.rewritten_origin_hosts == tuple(RENAMED)
        assert context.primary_host == RENAMED[0]

    def test_renamed_and_added_members(self, workload):
        replica_set = FakeReplicaSet(RENAMED + TARGET[:2])
        context = _builder(replica_set, service_manifest()).build(workload)
        assert context.origin_hosts == tuple(LOCAL)
        assert context.target_hosts == tuple(TARGET)
