"""
Observability utilities for clustershift.

Components accept an optional ``tracer`` argument and otherwise build one;
``create_tracer`` returns an OpenTelemetry-backed tracer when tracing is
enabled. Attribute keys live in ``clustershift.observability.attributes``.
"""

from clustershift.observability.attributes import (
    ATTR_CLUSTER_NAME,
    ATTR_MEMBER_COUNT,
    ATTR_MEMBER_HOST,
    ATTR_MIGRATION_STATE,
    ATTR_NAMESPACE,
    ATTR_NETWORKING_TOOL,
    ATTR_PRIMARY_HOST,
    ATTR_SERVICE_TOPOLOGY,
    ATTR_WORKLOAD_COUNT,
    ATTR_WORKLOAD_NAME,
)
from clustershift.observability.tracer import (
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    Tracer,
    create_tracer,
)

__all__ = [
    # Tracer
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "create_tracer",
    # Attributes
    "ATTR_CLUSTER_NAME",
    "ATTR_MEMBER_COUNT",
    "ATTR_MEMBER_HOST",
    "ATTR_MIGRATION_STATE",
    "ATTR_NAMESPACE",
    "ATTR_NETWORKING_TOOL",
    "ATTR_PRIMARY_HOST",
    "ATTR_SERVICE_TOPOLOGY",
    "ATTR_WORKLOAD_COUNT",
    "ATTR_WORKLOAD_NAME",
]
