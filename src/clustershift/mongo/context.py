"""
Migration Context Builder.

Reads everything a workload migration needs and computes the per-workload
plan. Nothing is mutated here, so building may be retried freely.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from clustershift.config import MigrationConfig
from clustershift.exceptions import StateError
from clustershift.kube import Clusters, ResourceKind
from clustershift.mongo.admin import ReplicaSetAdmin
from clustershift.mongo.models import (
    DatabaseWorkload,
    MigrationContext,
    ServiceTopology,
    WorkloadService,
)
from clustershift.mongo.translator import (
    local_pod_host,
    local_service_host,
    rewrite_hosts,
    with_port,
)
from clustershift.networking import NetworkingCapability
from clustershift.observability import (
    ATTR_MEMBER_COUNT,
    ATTR_NAMESPACE,
    ATTR_SERVICE_TOPOLOGY,
    ATTR_WORKLOAD_NAME,
    Tracer,
    create_tracer,
)

logger = logging.getLogger(__name__)


class MigrationContextBuilder:
    """
    Builds a MigrationContext for one workload.

    Steps:
        1. Find the origin service whose selector equals the workload's
           ``matchLabels``.
        2. Ask the live replica set, through the service address, for its
           primary and its member list.
        3. Rewrite the member list for the origin and for the target cluster.

    Members that an interrupted earlier run already renamed or added are
    mapped back to the workload-local name they stand for, so a re-run plans
    the same migration as the first attempt.

    Args:
        clusters: Origin and target clusters.
        networking: Fabric supplying the DNS schemes.
        admin: Replica-set administration through the origin worker pod.
        config: Migration configuration.
        tracer: Optional custom tracer.
        enable_tracing: Whether to create a tracer when none is given.
    """

    def __init__(
        self,
        clusters: Clusters,
        networking: NetworkingCapability,
        admin: ReplicaSetAdmin,
        config: MigrationConfig | None = None,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._clusters = clusters
        self._networking = networking
        self._admin = admin
        self._config = config or MigrationConfig()
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    def find_service(self, workload: DatabaseWorkload) -> WorkloadService:
        """
        The first origin service whose selector equals the workload's labels.

        Raises:
            StateError: If no service matches.
        """
        for service in self._clusters.origin.fetch_all(ResourceKind.SERVICE, workload.namespace):
            selector = (service.get("spec") or {}).get("selector") or {}
            if selector and selector == workload.selector:
                return WorkloadService.from_manifest(service)
        raise StateError("No service selects the workload's pods", workload=workload.key)

    def build(self, workload: DatabaseWorkload) -> MigrationContext:
        """
        Build the migration plan for ``workload``.

        Raises:
            StateError: No matching service, no PRIMARY, or a member host
                that is not a workload-local DNS name.
            ExecutionError: If the replica set cannot be queried.
            ParseError: If its answers cannot be decoded.
        """
        port = self._config.mongo_port
        with self._tracer.span(
            "clustershift.context.build",
            {ATTR_WORKLOAD_NAME: workload.name, ATTR_NAMESPACE: workload.namespace},
        ) as span:
            service = self.find_service(workload)
            check_host = local_service_host(service.name, service.namespace, port)

            primary = self._admin.primary_host(check_host)
            live = self._admin.member_hosts(check_host)
            origin = self._local_hosts(live, workload, service)

            rewritten = rewrite_hosts(
                origin, service.topology, self._networking, self._clusters.origin.name, port
            )
            target = rewrite_hosts(
                origin, service.topology, self._networking, self._clusters.target.name, port
            )

            if span is not None:
                span.set_attribute(ATTR_SERVICE_TOPOLOGY, service.topology.value)
                span.set_attribute(ATTR_MEMBER_COUNT, len(origin))

        logger.info(
            "Planned migration of %s via %s service %s: primary %s, members %s -> %s",
            workload.key,
            service.topology.value,
            service.name,
            primary,
            origin,
            target,
        )
        return MigrationContext(
            workload=workload,
            service=service,
            primary_host=primary,
            origin_hosts=tuple(origin),
            rewritten_origin_hosts=tuple(rewritten),
            target_hosts=tuple(target),
        )

    def _local_hosts(
        self,
        live: Sequence[str],
        workload: DatabaseWorkload,
        service: WorkloadService,
    ) -> list[str]:
        if service.topology is not ServiceTopology.HEADLESS:
            return list(live)

        port = self._config.mongo_port
        renamed: dict[str, str] = {}
        for pod in workload.pod_names:
            local = local_pod_host(pod, service.name, service.namespace, port)
            for cluster in self._clusters:
                name = self._networking.headless_dns_name_for(
                    pod, service.name, service.namespace, cluster.name
                )
                renamed[with_port(name, port)] = local

        hosts: list[str] = []
        for host in live:
            local = renamed.get(host, host)
            if local != host:
                logger.warning(
                    "Member %s of %s comes from an earlier run; planning it as %s",
                    host,
                    workload.key,
                    local,
                )
            if local not in hosts:
                hosts.append(local)
        return hosts


__all__ = ["MigrationContextBuilder"]
