"""Preparing fetched resources for creation in another cluster."""

from __future__ import annotations

import copy
from typing import Any

_SERVER_METADATA = (
    "uid",
    "resourceVersion",
    "creationTimestamp",
    "managedFields",
    "generation",
    "selfLink",
    "ownerReferences",
)


def clean_for_creation(resource: dict[str, Any]) -> dict[str, Any]:
    """
    Return a copy of ``resource`` that another cluster will accept on create.

    Drops ``status`` and server-populated metadata. For a Service the
    allocated ``clusterIP``/``clusterIPs`` are dropped too, unless the
    service is headless (``clusterIP: None``), which must be kept.

    Args:
        resource: Resource dictionary as fetched from the origin cluster.

    Returns:
        A new dictionary; the input is not modified.
    """
    cleaned = copy.deepcopy(resource)
    cleaned.pop("status", None)

    metadata = cleaned.get("metadata") or {}
    for key in _SERVER_METADATA:
        metadata.pop(key, None)

    if cleaned.get("kind") == "Service":
        spec = cleaned.get("spec") or {}
        if spec.get("clusterIP") != "None":
            spec.pop("clusterIP", None)
            spec.pop("clusterIPs", None)

    return cleaned


__all__ = ["clean_for_creation"]
