"""
Host address translation.

Replica-set members register under cluster-local names such as
``mongo-0.mongo.db.svc.cluster.local:27017``, which stop resolving once a
member lives in the other cluster. rewrite_hosts() turns them into names the
networking fabric makes resolvable from both clusters.
"""

from __future__ import annotations

from collections.abc import Sequence

from clustershift.exceptions import StateError
from clustershift.mongo.models import ServiceTopology
from clustershift.networking import NetworkingCapability

LOCAL_DOMAIN = "svc.cluster.local"


def split_member_host(host: str) -> tuple[str, str, str]:
    """
    Decompose a workload-local member host into ``(pod, service, namespace)``.

    A trailing ``:port`` is ignored.

    Raises:
        StateError: If the host has fewer than three dot-separated segments.

    Example:
        >>> split_member_host("mongo-0.mongo.db.svc.cluster.local:27017")
        ('mongo-0', 'mongo', 'db')
    """
    hostname = host.rsplit(":", 1)[0] if ":" in host else host
    parts = hostname.split(".")
    if len(parts) < 3 or not all(parts[:3]):
        raise StateError(f"{host!r} is not a workload-local DNS name")
    return parts[0], parts[1], parts[2]


def with_port(hostname: str, port: int) -> str:
    """Append ``:port`` unless the host already carries one."""
    if ":" in hostname:
        return hostname
    return f"{hostname}:{port}"


def local_service_host(service: str, namespace: str, port: int) -> str:
    """Cluster-local address of a service, as used inside its own cluster."""
    return f"{service}.{namespace}.{LOCAL_DOMAIN}:{port}"


def local_pod_host(pod: str, service: str, namespace: str, port: int) -> str:
    """Cluster-local address of one pod behind a headless service."""
    return f"{pod}.{service}.{namespace}.{LOCAL_DOMAIN}:{port}"


def rewrite_hosts(
    origin_hosts: Sequence[str],
    topology: ServiceTopology,
    networking: NetworkingCapability,
    cluster_identity: str,
    port: int = 27017,
) -> list[str]:
    """
    Rewrite member hosts into migration-stable addresses for one cluster.

    Called once with the origin cluster identity (the names existing members
    will be renamed to) and once with the target cluster identity (the names
    new members register under). The result is index-aligned with
    ``origin_hosts``.

    Args:
        origin_hosts: Workload-local member hosts.
        topology: The workload service's topology.
        networking: Fabric supplying the DNS schemes.
        cluster_identity: Cluster the rewritten names should point into.
        port: Member port appended to every rewritten host.

    Raises:
        StateError: If any host is not a workload-local DNS name.
    """
    rewritten = []
    for host in origin_hosts:
        pod, service, namespace = split_member_host(host)
        if topology is ServiceTopology.HEADLESS:
            name = networking.headless_dns_name_for(pod, service, namespace, cluster_identity)
        else:
            name = networking.dns_name_for(service, namespace)
        rewritten.append(with_port(name, port))
    return rewritten


__all__ = [
    "LOCAL_DOMAIN",
    "split_member_host",
    "with_port",
    "local_service_host",
    "local_pod_host",
    "rewrite_hosts",
]
