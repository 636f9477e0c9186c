"""
Membership State Machine.

ReplicaSetMigrator moves one replica set from the origin cluster to the
target cluster while it keeps serving:

    PENDING
      -> PROVISIONED                 target Service and StatefulSet ready
      -> NETWORKING_ESTABLISHED      service exported in both clusters
      -> ORIGIN_ADDRESSES_REWRITTEN  members renamed to migration-stable hosts
      -> TARGET_MEMBERS_JOINING      target members added, caught up
      -> PRIMARY_TRANSFERRING        targets electable, origins not
      -> PRIMARY_ELECTED             a target member is primary
      -> ORIGIN_MEMBERS_REMOVED      origin members removed one by one
      -> DONE

The first failure moves the run to FAILED and is raised as a
WorkloadMigrationError. Nothing is compensated. Every step re-reads the live
replica-set configuration before changing it and skips work that is already
done, so re-running a failed migration completes it from where it stopped.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime

from clustershift.config import MigrationConfig
from clustershift.exceptions import (
    ExecutionError,
    InvalidStateTransitionError,
    StateError,
    WorkloadMigrationError,
)
from clustershift.kube import Clusters, ResourceKind, clean_for_creation
from clustershift.mongo.admin import ReplicaSetAdmin
from clustershift.mongo.models import (
    MemberRole,
    MigrationContext,
    MigrationResult,
    MigrationState,
    ReplicaSetMember,
    StateTransition,
)
from clustershift.networking import NetworkingCapability
from clustershift.observability import (
    ATTR_MIGRATION_STATE,
    ATTR_NAMESPACE,
    ATTR_NETWORKING_TOOL,
    ATTR_WORKLOAD_NAME,
    Tracer,
    create_tracer,
)
from clustershift.poller import wait_until

logger = logging.getLogger(__name__)

Step = Callable[[MigrationContext], None]


class ReplicaSetMigrator:
    """
    Runs the membership state machine for one workload at a time.

    Args:
        clusters: Origin and target clusters.
        networking: Fabric used to export the workload's service.
        origin_admin: Administration through the origin worker pod.
        target_admin: Administration through the target worker pod; used
            once a target member is primary.
        config: Migration configuration.
        tracer: Optional custom tracer.
        enable_tracing: Whether to create a tracer when none is given.
        sleep: Sleep function (injectable for tests).
        clock: Monotonic clock for poll deadlines (injectable for tests).

    Example:
        >>> migrator = ReplicaSetMigrator(clusters, networking, origin_admin, target_admin)
        >>> result = migrator.run(context)
        >>> result.final_state
        <MigrationState.DONE: 'done'>
    """

    def __init__(
        self,
        clusters: Clusters,
        networking: NetworkingCapability,
        origin_admin: ReplicaSetAdmin,
        target_admin: ReplicaSetAdmin,
        config: MigrationConfig | None = None,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clusters = clusters
        self._networking = networking
        self._origin_admin = origin_admin
        self._target_admin = target_admin
        self._config = config or MigrationConfig()
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._sleep = sleep
        self._clock = clock

        self._state = MigrationState.PENDING
        self._history: list[StateTransition] = []
        self._workload: str | None = None

        self._steps: list[tuple[MigrationState, Step]] = [
            (MigrationState.PROVISIONED, self._provision),
            (MigrationState.NETWORKING_ESTABLISHED, self._establish_networking),
            (MigrationState.ORIGIN_ADDRESSES_REWRITTEN, self._rewrite_origin_addresses),
            (MigrationState.TARGET_MEMBERS_JOINING, self._join_target_members),
            (MigrationState.PRIMARY_TRANSFERRING, self._transfer_priorities),
            (MigrationState.PRIMARY_ELECTED, self._await_target_primary),
            (MigrationState.ORIGIN_MEMBERS_REMOVED, self._remove_origin_members),
            (MigrationState.DONE, self._confirm_membership),
        ]
        self._final_primary: str | None = None
        self._final_members: list[str] = []

    @property
    def state(self) -> MigrationState:
        """State of the current or most recent run."""
        return self._state

    @property
    def history(self) -> list[StateTransition]:
        """Transitions of the current or most recent run, oldest first."""
        return list(self._history)

    def run(self, context: MigrationContext) -> MigrationResult:
        """
        Migrate one workload to completion.

        Args:
            context: Plan built by MigrationContextBuilder.

        Returns:
            MigrationResult with final state DONE.

        Raises:
            WorkloadMigrationError: At the first failure, naming the state
                that was being entered and the underlying cause.
        """
        self._state = MigrationState.PENDING
        self._history = []
        self._workload = context.workload.key
        self._final_primary = None
        self._final_members = []
        started_at = datetime.now(UTC)

        logger.info("Starting migration of %s", self._workload)
        with self._tracer.span(
            "clustershift.migrator.run",
            {
                ATTR_WORKLOAD_NAME: context.workload.name,
                ATTR_NAMESPACE: context.workload.namespace,
                ATTR_NETWORKING_TOOL: self._networking.tool.value,
            },
        ):
            for state, step in self._steps:
                self._enter(state, step, context)

        result = MigrationResult(
            workload=self._workload,
            final_state=self._state,
            transitions=tuple(self._history),
            started_at=started_at,
            finished_at=datetime.now(UTC),
            primary_host=self._final_primary,
            members=tuple(self._final_members),
        )
        logger.info(
            "Migrated %s in %.1fs: primary %s, members %s",
            self._workload,
            result.duration_seconds,
            self._final_primary,
            self._final_members,
        )
        return result

    def _enter(self, state: MigrationState, step: Step, context: MigrationContext) -> None:
        if not self._state.can_transition_to(state):
            raise InvalidStateTransitionError(self._state, state, workload=self._workload)

        try:
            with self._tracer.span(
                f"clustershift.migrator.{state.value}",
                {ATTR_WORKLOAD_NAME: context.workload.name, ATTR_MIGRATION_STATE: state.value},
            ):
                step(context)
        except Exception as exc:
            self._transition(MigrationState.FAILED, error=str(exc))
            raise WorkloadMigrationError(context.workload.key, state, exc) from exc

        self._transition(state)

    def _transition(self, target: MigrationState, error: str | None = None) -> None:
        if not self._state.can_transition_to(target):
            raise InvalidStateTransitionError(self._state, target, workload=self._workload)
        self._history.append(
            StateTransition(
                from_state=self._state,
                to_state=target,
                at=datetime.now(UTC),
                error=error,
            )
        )
        logger.info("%s: %s -> %s", self._workload, self._state.value, target.value)
        self._state = target

    # =========================================================================
    # States
    # =========================================================================

    def _provision(self, context: MigrationContext) -> None:
        target = self._clusters.target
        workload = context.workload
        namespace = workload.namespace

        target.create_if_absent(ResourceKind.NAMESPACE, None, {"metadata": {"name": namespace}})
        target.create_if_absent(
            ResourceKind.SERVICE, namespace, clean_for_creation(context.service.manifest)
        )
        target.create_if_absent(
            ResourceKind.STATEFUL_SET, namespace, clean_for_creation(workload.manifest)
        )
        target.wait_until_ready(
            ResourceKind.STATEFUL_SET,
            workload.name,
            namespace,
            timeout=self._config.workload_ready_timeout,
            interval=self._config.resource_poll_interval,
            sleep=self._sleep,
            clock=self._clock,
        )

    def _establish_networking(self, context: MigrationContext) -> None:
        service = context.service
        self._networking.prepare_namespace(self._clusters, service.namespace)
        for cluster in self._clusters:
            self._networking.export_service(cluster, service.namespace, service.name)

        settle = self._config.networking_settle_seconds
        if settle > 0:
            logger.info("Waiting %.0fs for %s exports to settle", settle, self._networking.tool.value)
            self._sleep(settle)

    def _rewrite_origin_addresses(self, context: MigrationContext) -> None:
        primary = self._origin_primary(context)
        live = self._origin_admin.member_hosts(primary)

        if not any(host in live for host in context.origin_hosts):
            logger.warning("Member hosts of %s already rewritten: %s", self._workload, live)
            return
        self._origin_admin.overwrite_hosts(primary, context.rewritten_origin_hosts)

    def _join_target_members(self, context: MigrationContext) -> None:
        primary = self._origin_primary(context)
        live = set(self._origin_admin.member_hosts(primary))

        # add all first so the members initial-sync in parallel
        for host in context.target_hosts:
            if host in live:
                logger.warning("Target member %s already in the replica set", host)
                continue
            self._origin_admin.add_member(primary, host)

        for host in context.target_hosts:
            wait_until(
                lambda host=host: self._has_caught_up(primary, host),
                interval=self._config.poll_interval,
                timeout=self._config.secondary_timeout,
                description=f"{host} to become SECONDARY",
                sleep=self._sleep,
                clock=self._clock,
            )
            logger.info("Target member %s is SECONDARY", host)

    def _transfer_priorities(self, context: MigrationContext) -> None:
        primary = self._origin_primary(context)
        members = {m.host: m for m in self._origin_admin.members(primary)}

        desired: dict[str, float] = {}
        for host in context.target_hosts:
            if host in members:
                desired[host] = self._config.electable_priority
        if not desired:
            raise StateError(
                "No target member is in the replica set to take over as primary",
                workload=self._workload,
            )
        for host in context.rewritten_origin_hosts:
            if host in members:
                desired[host] = self._config.non_electable_priority

        if all(members[host].priority == priority for host, priority in desired.items()):
            logger.warning("Priorities of %s already transferred", self._workload)
            return
        self._origin_admin.set_priorities(primary, desired)

    def _await_target_primary(self, context: MigrationContext) -> None:
        check_host = context.check_host

        def target_is_primary() -> bool:
            try:
                current = self._origin_admin.primary_host(check_host)
            except (ExecutionError, StateError) as exc:
                logger.warning("No primary reported via %s yet: %s", check_host, exc)
                return False
            if current in context.target_hosts:
                logger.info("Target member %s elected primary", current)
                return True
            logger.debug("Primary of %s is still %s", self._workload, current)
            return False

        wait_until(
            target_is_primary,
            interval=self._config.poll_interval,
            timeout=self._config.election_timeout,
            description=f"a target member of {self._workload} to become primary",
            sleep=self._sleep,
            clock=self._clock,
        )

    def _remove_origin_members(self, context: MigrationContext) -> None:
        for host in context.rewritten_origin_hosts:
            # the primary may move while the set shrinks
            primary = self._target_admin.primary_host(context.check_host)
            members = self._target_admin.members(primary)
            if host not in {m.host for m in members}:
                logger.warning("Origin member %s already removed", host)
                continue
            self._guard_removal(host, primary, members)
            self._target_admin.remove_member(primary, host)

    def _confirm_membership(self, context: MigrationContext) -> None:
        primary = self._target_admin.primary_host(context.check_host)
        if primary not in context.target_hosts:
            raise StateError(
                f"Primary moved back to {primary} after origin members were removed",
                workload=self._workload,
            )
        self._final_primary = primary
        self._final_members = self._target_admin.member_hosts(primary)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _origin_primary(self, context: MigrationContext) -> str:
        return self._origin_admin.primary_host(context.primary_host)

    def _has_caught_up(self, primary: str, host: str) -> bool:
        role = self._origin_admin.role_of(primary, host)
        return role in (MemberRole.SECONDARY, MemberRole.PRIMARY)

    def _guard_removal(self, host: str, primary: str, members: list[ReplicaSetMember]) -> None:
        if host == primary:
            raise StateError(
                f"Refusing to remove {host}: it is the current primary",
                workload=self._workload,
            )
        if not any(m.electable for m in members if m.host != host):
            raise StateError(
                f"Refusing to remove {host}: no other electable member would remain",
                workload=self._workload,
            )


__all__ = ["ReplicaSetMigrator"]
