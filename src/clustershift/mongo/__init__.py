"""
Cross-cluster replica-set migration.

Key Components:
    - MongoShellChannel: Evaluates shell commands in a worker pod
    - ReplicaSetAdmin: Replica-set configuration and status commands
    - MigrationContextBuilder: Plans one workload's migration
    - ReplicaSetMigrator: Membership state machine
    - MigrationDriver: Sequential run over all discovered workloads

Usage:
    >>> from clustershift.mongo import MigrationDriver
    >>> from clustershift.networking import get_networking_capability
    >>>
    >>> driver = MigrationDriver(clusters, get_networking_capability("submariner"))
    >>> for result in driver.run():
    ...     print(result.workload, result.final_state.value)
"""

from clustershift.mongo.admin import ReplicaSetAdmin
from clustershift.mongo.channel import ClientPod, CommandChannel, MongoShellChannel
from clustershift.mongo.context import MigrationContextBuilder
from clustershift.mongo.discovery import credentials_for_workload, discover_workloads
from clustershift.mongo.driver import MigrationDriver
from clustershift.mongo.migrator import ReplicaSetMigrator
from clustershift.mongo.models import (
    DatabaseWorkload,
    MemberConfig,
    MemberRole,
    MemberStatus,
    MigrationContext,
    MigrationResult,
    MigrationState,
    ReplicaSetMember,
    ServiceTopology,
    StateTransition,
    WorkloadService,
)
from clustershift.mongo.parser import (
    extract_json,
    parse_config_members,
    parse_member_list,
    parse_status,
)
from clustershift.mongo.translator import rewrite_hosts, split_member_host

__all__ = [
    # Channel
    "CommandChannel",
    "ClientPod",
    "MongoShellChannel",
    # Parsing
    "extract_json",
    "parse_config_members",
    "parse_member_list",
    "parse_status",
    # Translation
    "rewrite_hosts",
    "split_member_host",
    # Orchestration
    "ReplicaSetAdmin",
    "MigrationContextBuilder",
    "ReplicaSetMigrator",
    "MigrationDriver",
    "discover_workloads",
    "credentials_for_workload",
    # Models
    "DatabaseWorkload",
    "WorkloadService",
    "ServiceTopology",
    "MemberRole",
    "MemberConfig",
    "MemberStatus",
    "ReplicaSetMember",
    "MigrationContext",
    "MigrationState",
    "StateTransition",
    "MigrationResult",
]
