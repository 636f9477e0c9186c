"""
Migration driver.

Discovers the workloads in the origin cluster and migrates them strictly one
after another. Workloads share the exported-service state of the fabric and
one worker pod per cluster, so they are never migrated concurrently. The
first failed workload stops the whole run.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from clustershift.config import MigrationConfig, MongoCredentials
from clustershift.exceptions import ClusterShiftError, WorkloadMigrationError
from clustershift.kube import Clusters
from clustershift.mongo.admin import ReplicaSetAdmin
from clustershift.mongo.channel import ClientPod, MongoShellChannel
from clustershift.mongo.context import MigrationContextBuilder
from clustershift.mongo.discovery import credentials_for_workload, discover_workloads
from clustershift.mongo.migrator import ReplicaSetMigrator
from clustershift.mongo.models import DatabaseWorkload, MigrationResult, MigrationState
from clustershift.networking import NetworkingCapability
from clustershift.observability import (
    ATTR_NETWORKING_TOOL,
    ATTR_WORKLOAD_COUNT,
    Tracer,
    create_tracer,
)

logger = logging.getLogger(__name__)


class MigrationDriver:
    """
    Migrates every data-store workload from origin to target.

    Args:
        clusters: Origin and target clusters.
        networking: Fabric selected for this run.
        config: Migration configuration.
        credentials: Credentials used when a workload declares none.
        tracer: Optional custom tracer.
        enable_tracing: Whether to create a tracer when none is given.
        sleep: Sleep function (injectable for tests).
        clock: Monotonic clock (injectable for tests).

    Example:
        >>> driver = MigrationDriver(clusters, get_networking_capability("submariner"))
        >>> results = driver.run()
    """

    def __init__(
        self,
        clusters: Clusters,
        networking: NetworkingCapability,
        config: MigrationConfig | None = None,
        credentials: MongoCredentials | None = None,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clusters = clusters
        self._networking = networking
        self._config = config or MigrationConfig()
        self._credentials = credentials
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._sleep = sleep
        self._clock = clock

    def run(self) -> list[MigrationResult]:
        """
        Discover and migrate all workloads.

        Returns:
            One result per workload, in migration order.

        Raises:
            WorkloadMigrationError: For the first workload that fails; later
                workloads are not attempted.
            ClusterShiftError: If discovery or worker pod setup fails.
        """
        workloads = discover_workloads(self._clusters.origin, self._config)
        if not workloads:
            logger.info("No workloads to migrate in %s", self._clusters.origin.name)
            return []

        pods = [
            ClientPod(cluster, self._config, sleep=self._sleep, clock=self._clock)
            for cluster in self._clusters
        ]
        with self._tracer.span(
            "clustershift.driver.run",
            {
                ATTR_WORKLOAD_COUNT: len(workloads),
                ATTR_NETWORKING_TOOL: self._networking.tool.value,
            },
        ):
            try:
                for pod in pods:
                    pod.provision()
                origin_channel, target_channel = [
                    MongoShellChannel(pod, port=self._config.mongo_port, tracer=self._tracer)
                    for pod in pods
                ]
                results = []
                for index, workload in enumerate(workloads, start=1):
                    logger.info("Migrating workload %d/%d: %s", index, len(workloads), workload.key)
                    results.append(self.migrate(workload, origin_channel, target_channel))
            finally:
                if self._config.cleanup_client_pods:
                    for pod in pods:
                        pod.delete()

        logger.info("Migrated %d workload(s)", len(results))
        return results

    def migrate(
        self,
        workload: DatabaseWorkload,
        origin_channel: MongoShellChannel,
        target_channel: MongoShellChannel,
    ) -> MigrationResult:
        """
        Build the context for one workload and run its state machine.

        Raises:
            WorkloadMigrationError: If the context cannot be built (state
                PENDING) or any state fails.
        """
        try:
            credentials = credentials_for_workload(
                self._clusters.origin, workload, self._credentials
            )
            origin_admin = ReplicaSetAdmin(
                origin_channel.with_credentials(credentials), tracer=self._tracer
            )
            target_admin = ReplicaSetAdmin(
                target_channel.with_credentials(credentials), tracer=self._tracer
            )
            builder = MigrationContextBuilder(
                self._clusters, self._networking, origin_admin, self._config, tracer=self._tracer
            )
            context = builder.build(workload)
        except ClusterShiftError as exc:
            raise WorkloadMigrationError(workload.key, MigrationState.PENDING, exc) from exc

        migrator = ReplicaSetMigrator(
            self._clusters,
            self._networking,
            origin_admin,
            target_admin,
            self._config,
            tracer=self._tracer,
            sleep=self._sleep,
            clock=self._clock,
        )
        return migrator.run(context)


__all__ = ["MigrationDriver"]
