"""
Standard span attributes for clustershift.

Span names follow ``clustershift.<component>.<operation>``; the constants
below are the attribute keys attached to those spans.
"""

# =============================================================================
# Workload Attributes
# =============================================================================

ATTR_WORKLOAD_NAME = "clustershift.workload.name"
"""Name of the StatefulSet being migrated (string)."""

ATTR_NAMESPACE = "clustershift.workload.namespace"
"""Namespace of the workload (string)."""

ATTR_MEMBER_COUNT = "clustershift.workload.member_count"
"""Number of replica-set members in the origin cluster (integer)."""

# =============================================================================
# Migration Attributes
# =============================================================================

ATTR_MIGRATION_STATE = "clustershift.migration.state"
"""State being entered by the membership state machine (string)."""

ATTR_SERVICE_TOPOLOGY = "clustershift.migration.topology"
"""Service topology of the workload: headless or cluster_routed (string)."""

ATTR_WORKLOAD_COUNT = "clustershift.migration.workload_count"
"""Number of workloads discovered for a driver run (integer)."""

# =============================================================================
# Replica-set Attributes
# =============================================================================

ATTR_MEMBER_HOST = "clustershift.member.host"
"""Host (host:port) of the replica-set member being changed (string)."""

ATTR_PRIMARY_HOST = "clustershift.member.primary"
"""Host the command was addressed to as the current primary (string)."""

# =============================================================================
# Infrastructure Attributes
# =============================================================================

ATTR_CLUSTER_NAME = "clustershift.cluster.name"
"""Identity of the Kubernetes cluster involved (string)."""

ATTR_NETWORKING_TOOL = "clustershift.networking.tool"
"""Cross-cluster networking fabric in use (string)."""


__all__ = [
    "ATTR_WORKLOAD_NAME",
    "ATTR_NAMESPACE",
    "ATTR_MEMBER_COUNT",
    "ATTR_MIGRATION_STATE",
    "ATTR_SERVICE_TOPOLOGY",
    "ATTR_WORKLOAD_COUNT",
    "ATTR_MEMBER_HOST",
    "ATTR_PRIMARY_HOST",
    "ATTR_CLUSTER_NAME",
    "ATTR_NETWORKING_TOOL",
]
