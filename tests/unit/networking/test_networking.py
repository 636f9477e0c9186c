"""
Unit tests for the networking capabilities.
"""

import pytest

from clustershift.exceptions import KubernetesError, UnsupportedNetworkingToolError
from clustershift.kube import Clusters, ResourceKind
from clustershift.networking import (
    LinkerdNetworking,
    NetworkingCapability,
    SkupperNetworking,
    SubmarinerNetworking,
    ToolIdentifier,
    get_networking_capability,
)
from tests.fixtures import FakeCluster, service_manifest


@pytest.fixture
def cluster():
    cluster = FakeCluster("origin")
    cluster.add(ResourceKind.NAMESPACE, {"metadata": {"name": "db"}})
    cluster.add(ResourceKind.SERVICE, service_manifest())
    return cluster


class TestGetNetworkingCapability:
    """Tests for get_networking_capability()."""

    @pytest.mark.parametrize(
        "tool, expected",
        [
            ("submariner", SubmarinerNetworking),
            ("Skupper", SkupperNetworking),
            (" LINKERD ", LinkerdNetworking),
            (ToolIdentifier.SUBMARINER, SubmarinerNetworking),
        ],
    )
    def test_known_tools(self, tool, expected):
        capability = get_networking_capability(tool)
        assert isinstance(capability, expected)
        assert isinstance(capability, NetworkingCapability)

    def test_unknown_tool(self):
        with pytest.raises(UnsupportedNetworkingToolError) as exc_info:
            get_networking_capability("istio")
        assert exc_info.value.tool == "istio"

    def test_repr(self):
        assert repr(SkupperNetworking()) == "SkupperNetworking(tool='skupper')"


class TestSubmarinerNetworking:
    """Tests for SubmarinerNetworking."""

    def test_dns_names(self):
        networking = SubmarinerNetworking()
        assert networking.dns_name_for("mongo", "db") == "mongo.db.svc.clusterset.local"
        assert (
            networking.headless_dns_name_for("mongo-0", "mongo", "db", "target")
            == "mongo-0.target.mongo.db.svc.clusterset.local"
        )

    def test_export_creates_service_export(self, cluster):
        SubmarinerNetworking().export_service(cluster, "db", "mongo")
        export = cluster.get(ResourceKind.SERVICE_EXPORT, "mongo", "db")
        assert export["metadata"] == {"name": "mongo", "namespace": "db"}

    def test_export_is_idempotent(self, cluster):
        networking = SubmarinerNetworking()
        networking.export_service(cluster, "db", "mongo")
        networking.export_service(cluster, "db", "mongo")
        assert cluster.created.count((ResourceKind.SERVICE_EXPORT, "db", "mongo")) == 1

    def test_export_requires_service(self, cluster):
        with pytest.raises(KubernetesError):
            SubmarinerNetworking().export_service(cluster, "db", "missing")
        assert cluster.get(ResourceKind.SERVICE_EXPORT, "missing", "db") is None

    def test_prepare_namespace_does_nothing(self, cluster):
        SubmarinerNetworking().prepare_namespace(Clusters(cluster, FakeCluster("target")), "db")
        assert cluster.created == []


class TestSkupperNetworking:
    """Tests for SkupperNetworking."""

    def test_dns_names(self):
        networking = SkupperNetworking()
        assert networking.dns_name_for("mongo", "db") == "mongo.db.svc.cluster.local"
        assert (
            networking.headless_dns_name_for("mongo-1", "mongo", "db", "origin")
            == "mongo-1.mongo-origin.db.svc.cluster.local"
        )

    def test_export_annotates_service(self, cluster):
        SkupperNetworking().export_service(cluster, "db", "mongo")
        annotations = cluster.get(ResourceKind.SERVICE, "mongo", "db")["metadata"]["annotations"]
        assert annotations == {"skupper.io/proxy": "tcp", "skupper.io/address": "mongo-origin"}


class TestLinkerdNetworking:
    """Tests for LinkerdNetworking."""

    def test_dns_names(self):
        networking = LinkerdNetworking()
        assert networking.dns_name_for("mongo", "db") == "mongo.db.svc.cluster.local"
        assert (
            networking.headless_dns_name_for("mongo-2", "mongo", "db", "target")
            == "mongo-2.mongo-target.db.svc.cluster.local"
        )

    def test_export_labels_service(self, cluster):
        LinkerdNetworking().export_service(cluster, "db", "mongo")
        labels = cluster.get(ResourceKind.SERVICE, "mongo", "db")["metadata"]["labels"]
        assert labels == {"mirror.linkerd.io/exported": "true"}

    def test_prepare_namespace_enables_injection_in_both_clusters(self, cluster):
        target = FakeCluster("target")
        target.add(ResourceKind.NAMESPACE, {"metadata": {"name": "db"}})

        LinkerdNetworking().prepare_namespace(Clusters(cluster, target), "db")

        for c in (cluster, target):
            namespace = c.get(ResourceKind.NAMESPACE, "db")
            assert namespace["metadata"]["annotations"] == {"linkerd.io/inject": "enabled"}
