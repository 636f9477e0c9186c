"""
Data models for replica-set migration.

Enums:
    - ServiceTopology: How the workload's service addresses pods
    - MemberRole: Role a member reports in rs.status()
    - MigrationState: Membership state machine states

Workload:
    - DatabaseWorkload: A replicated data-store StatefulSet
    - WorkloadService: The service selecting the workload's pods

Replica set:
    - MemberConfig: One entry of rs.conf()
    - MemberStatus: One entry of rs.status()
    - ReplicaSetMember: Config and status of one member combined

Run:
    - MigrationContext: Per-workload migration plan
    - StateTransition: One entry of a run's history
    - MigrationResult: Outcome of a workload run
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from clustershift.exceptions import StateError


class ServiceTopology(Enum):
    """
    Addressing scheme of a workload's service.

    Attributes:
        HEADLESS: ``clusterIP: None``; every pod has a stable DNS name.
        CLUSTER_ROUTED: One virtual IP in front of all pods.
    """

    HEADLESS = "headless"
    CLUSTER_ROUTED = "cluster_routed"

    @classmethod
    def from_service(cls, service: dict[str, Any]) -> ServiceTopology:
        cluster_ip = (service.get("spec") or {}).get("clusterIP")
        return cls.HEADLESS if cluster_ip == "None" else cls.CLUSTER_ROUTED


class MemberRole(Enum):
    """Role of a replica-set member as reported by ``stateStr``."""

    PRIMARY = "PRIMARY"
    SECONDARY = "SECONDARY"
    OTHER = "OTHER"

    @classmethod
    def from_state_str(cls, state: str) -> MemberRole:
        try:
            return cls(state)
        except ValueError:
            return cls.OTHER


class MigrationState(Enum):
    """
    States of the membership state machine.

    State machine transitions:
        PENDING -> PROVISIONED -> NETWORKING_ESTABLISHED
            -> ORIGIN_ADDRESSES_REWRITTEN -> TARGET_MEMBERS_JOINING
            -> PRIMARY_TRANSFERRING -> PRIMARY_ELECTED
            -> ORIGIN_MEMBERS_REMOVED -> DONE
        Any non-terminal state -> FAILED

    States are entered strictly in order; none may be skipped.
    """

    PENDING = "pending"
    """Context built, nothing changed yet."""

    PROVISIONED = "provisioned"
    """Target service and StatefulSet exist and are ready."""

    NETWORKING_ESTABLISHED = "networking_established"
    """Workload service exported in both clusters."""

    ORIGIN_ADDRESSES_REWRITTEN = "origin_addresses_rewritten"
    """Existing members renamed to migration-stable addresses."""

    TARGET_MEMBERS_JOINING = "target_members_joining"
    """Target members added and caught up as SECONDARY."""

    PRIMARY_TRANSFERRING = "primary_transferring"
    """Target members electable, origin members not."""

    PRIMARY_ELECTED = "primary_elected"
    """A target member is primary."""

    ORIGIN_MEMBERS_REMOVED = "origin_members_removed"
    """Only target members remain."""

    DONE = "done"
    """Migration finished successfully."""

    FAILED = "failed"
    """Migration stopped at the first failure."""

    @property
    def is_terminal(self) -> bool:
        return self in (MigrationState.DONE, MigrationState.FAILED)

    @property
    def next_state(self) -> MigrationState | None:
        """The state that follows this one on success, or None if terminal."""
        if self.is_terminal:
            return None
        return _ORDER[_ORDER.index(self) + 1]

    def can_transition_to(self, target: MigrationState) -> bool:
        """
        Check if transition to target state is valid.

        Args:
            target: The state to transition to.

        Returns:
            True if ``target`` is the next state in order, or FAILED from
            any non-terminal state.
        """
        if self.is_terminal:
            return False
        if target == MigrationState.FAILED:
            return True
        return target == self.next_state


_ORDER: list[MigrationState] = [
    MigrationState.PENDING,
    MigrationState.PROVISIONED,
    MigrationState.NETWORKING_ESTABLISHED,
    MigrationState.ORIGIN_ADDRESSES_REWRITTEN,
    MigrationState.TARGET_MEMBERS_JOINING,
    MigrationState.PRIMARY_TRANSFERRING,
    MigrationState.PRIMARY_ELECTED,
    MigrationState.ORIGIN_MEMBERS_REMOVED,
    MigrationState.DONE,
]


@dataclass(frozen=True)
class DatabaseWorkload:
    """
    A replicated data-store deployment found in the origin cluster.

    Discovered read-only and never mutated.

    Attributes:
        name: StatefulSet name.
        namespace: StatefulSet namespace.
        image: Container image that matched the image signature.
        replicas: Desired replica count.
        selector: The StatefulSet's ``matchLabels``.
        manifest: The StatefulSet as fetched, used to provision the target.
    """

    name: str
    namespace: str
    image: str
    replicas: int = 1
    selector: dict[str, str] = field(default_factory=dict, compare=False, hash=False)
    manifest: dict[str, Any] = field(default_factory=dict, compare=False, hash=False, repr=False)

    @property
    def key(self) -> str:
        """Identity used in logs and errors: ``namespace/name``."""
        return f"{self.namespace}/{self.name}"

    @property
    def pod_names(self) -> list[str]:
        """Names of the StatefulSet's pods, by ordinal."""
        return [f"{self.name}-{ordinal}" for ordinal in range(self.replicas)]


@dataclass(frozen=True)
class WorkloadService:
    """
    The service whose selector matches a workload's pods.

    Attributes:
        name: Service name.
        namespace: Service namespace.
        topology: Headless or cluster-routed.
        manifest: The Service as fetched, used to provision the target.
    """

    name: str
    namespace: str
    topology: ServiceTopology
    manifest: dict[str, Any] = field(default_factory=dict, compare=False, hash=False, repr=False)

    @classmethod
    def from_manifest(cls, service: dict[str, Any]) -> WorkloadService:
        metadata = service.get("metadata") or {}
        return cls(
            name=metadata["name"],
            namespace=metadata["namespace"],
            topology=ServiceTopology.from_service(service),
            manifest=service,
        )


@dataclass(frozen=True)
class MemberConfig:
    """One member entry of the replica-set configuration document."""

    member_id: int
    host: str
    priority: float = 1.0


@dataclass(frozen=True)
class MemberStatus:
    """One member entry of the replica-set status document."""

    host: str
    role: MemberRole


@dataclass(frozen=True)
class ReplicaSetMember:
    """
    A live replica-set member.

    Always read from the live configuration; never cached as the source of
    truth.
    """

    host: str
    role: MemberRole
    priority: float

    @property
    def electable(self) -> bool:
        return self.priority > 0


@dataclass(frozen=True)
class MigrationContext:
    """
    Per-workload migration plan.

    The three host lists are index-aligned: ``origin_hosts[i]``,
    ``rewritten_origin_hosts[i]`` and ``target_hosts[i]`` name the same
    logical member before, during and after the migration.

    Raises:
        StateError: If the host lists differ in length.
    """

    workload: DatabaseWorkload
    service: WorkloadService
    primary_host: str
    origin_hosts: tuple[str, ...]
    rewritten_origin_hosts: tuple[str, ...]
    target_hosts: tuple[str, ...]

    def __post_init__(self) -> None:
        lengths = {
            len(self.origin_hosts),
            len(self.rewritten_origin_hosts),
            len(self.target_hosts),
        }
        if len(lengths) != 1:
            raise StateError(
                "Host lists are not index-aligned: "
                f"{len(self.origin_hosts)} origin, "
                f"{len(self.rewritten_origin_hosts)} rewritten, "
                f"{len(self.target_hosts)} target",
                workload=self.workload.key,
            )

    @property
    def check_host(self) -> str:
        """Well-known address used to look up the primary after the transfer."""
        if self.target_hosts:
            return self.target_hosts[0]
        return self.rewritten_origin_hosts[0]


@dataclass(frozen=True)
class StateTransition:
    """One entry of a run's history."""

    from_state: MigrationState
    to_state: MigrationState
    at: datetime
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "from_state": self.from_state.value,
            "to_state": self.to_state.value,
            "at": self.at.isoformat(),
            "error": self.error,
        }


@dataclass(frozen=True)
class MigrationResult:
    """
    Final result of a workload migration run.

    Attributes:
        workload: ``namespace/name`` of the workload.
        final_state: DONE on success.
        transitions: Ordered state history.
        started_at: When the run started (UTC).
        finished_at: When the run finished (UTC).
        primary_host: Primary reported at the end of the run.
        members: Member hosts at the end of the run.
    """

    workload: str
    final_state: MigrationState
    transitions: tuple[StateTransition, ...]
    started_at: datetime
    finished_at: datetime
    primary_host: str | None = None
    members: tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        return self.final_state == MigrationState.DONE

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation suitable for JSON.
        """
        return {
            "workload": self.workload,
            "success": self.success,
            "final_state": self.final_state.value,
            "duration_seconds": self.duration_seconds,
            "primary_host": self.primary_host,
            "members": list(self.members),
            "transitions": [t.to_dict() for t in self.transitions],
        }


__all__ = [
    "ServiceTopology",
    "MemberRole",
    "MigrationState",
    "DatabaseWorkload",
    "WorkloadService",
    "MemberConfig",
    "MemberStatus",
    "ReplicaSetMember",
    "MigrationContext",
    "StateTransition",
    "MigrationResult",
]
