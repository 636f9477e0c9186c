"""Readiness predicates over resource dictionaries."""

from __future__ import annotations

from typing import Any


def is_pod_ready(pod: dict[str, Any]) -> bool:
    """True when the pod's Ready condition is "True"."""
    conditions = (pod.get("status") or {}).get("conditions") or []
    return any(c.get("type") == "Ready" and c.get("status") == "True" for c in conditions)


def is_stateful_set_ready(stateful_set: dict[str, Any]) -> bool:
    """
    True when every desired replica is ready and up to date.

    A StatefulSet whose status reports no replicas yet is not ready.
    """
    status = stateful_set.get("status") or {}
    desired = (stateful_set.get("spec") or {}).get("replicas", 1)
    if not status.get("replicas"):
        return False
    return (
        status.get("readyReplicas", 0) == desired
        and status.get("updatedReplicas", 0) == desired
    )


__all__ = ["is_pod_ready", "is_stateful_set_ready"]
