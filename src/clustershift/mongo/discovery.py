"""
Finding replicated data-store workloads and their credentials.

A StatefulSet is a candidate when any container image contains the configured
image signature. StatefulSets owned by the community operator are skipped;
they reconcile their own membership and are not migrated this way.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any

from clustershift.config import MigrationConfig, MongoCredentials
from clustershift.exceptions import StateError
from clustershift.kube import ClusterClient, Resource, ResourceKind
from clustershift.mongo.models import DatabaseWorkload

logger = logging.getLogger(__name__)

OPERATOR_OWNER_KIND = "MongoDBCommunity"
USERNAME_ENV = "MONGO_INITDB_ROOT_USERNAME"
PASSWORD_ENV = "MONGO_INITDB_ROOT_PASSWORD"


def _containers(stateful_set: Resource) -> list[dict[str, Any]]:
    template = (stateful_set.get("spec") or {}).get("template") or {}
    return (template.get("spec") or {}).get("containers") or []


def _operator_owned(stateful_set: Resource) -> bool:
    owners = (stateful_set.get("metadata") or {}).get("ownerReferences") or []
    return bool(owners) and owners[0].get("kind") == OPERATOR_OWNER_KIND


def workload_from_stateful_set(stateful_set: Resource, image: str) -> DatabaseWorkload:
    metadata = stateful_set.get("metadata") or {}
    spec = stateful_set.get("spec") or {}
    return DatabaseWorkload(
        name=metadata["name"],
        namespace=metadata["namespace"],
        image=image,
        replicas=spec.get("replicas", 1),
        selector=dict((spec.get("selector") or {}).get("matchLabels") or {}),
        manifest=stateful_set,
    )


def discover_workloads(cluster: ClusterClient, config: MigrationConfig) -> list[DatabaseWorkload]:
    """
    List the data-store workloads in every namespace of ``cluster``.

    Returns:
        Workloads in the order the API server listed them.
    """
    workloads = []
    for stateful_set in cluster.fetch_all(ResourceKind.STATEFUL_SET):
        name = (stateful_set.get("metadata") or {}).get("name")
        if _operator_owned(stateful_set):
            logger.debug("Skipping operator-managed StatefulSet %s", name)
            continue
        for container in _containers(stateful_set):
            image = container.get("image") or ""
            if config.image_signature in image:
                workloads.append(workload_from_stateful_set(stateful_set, image))
                break

    logger.info(
        "Found %d workload(s) in %s: %s",
        len(workloads),
        cluster.name,
        [w.key for w in workloads],
    )
    return workloads


def _resolve_env(cluster: ClusterClient, namespace: str, env: dict[str, Any]) -> str | None:
    if env.get("value"):
        return env["value"]

    value_from = env.get("valueFrom") or {}
    if "secretKeyRef" in value_from:
        ref = value_from["secretKeyRef"]
        secret = cluster.fetch(ResourceKind.SECRET, ref["name"], namespace)
        encoded = (secret.get("data") or {}).get(ref["key"])
        if not encoded:
            return None
        try:
            return base64.b64decode(encoded, validate=True).decode()
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise StateError(
                f"Key {ref['key']} of Secret {namespace}/{ref['name']} in {cluster.name} "
                f"is not base64-encoded text: {exc}"
            ) from exc
    if "configMapKeyRef" in value_from:
        ref = value_from["configMapKeyRef"]
        config_map = cluster.fetch(ResourceKind.CONFIG_MAP, ref["name"], namespace)
        return (config_map.get("data") or {}).get(ref["key"])
    return None


def credentials_for_workload(
    cluster: ClusterClient,
    workload: DatabaseWorkload,
    fallback: MongoCredentials | None = None,
) -> MongoCredentials | None:
    """
    Read the root credentials a workload was initialised with.

    Looks at the first container's ``MONGO_INITDB_ROOT_USERNAME`` and
    ``MONGO_INITDB_ROOT_PASSWORD``, resolving literal values, Secret keys and
    ConfigMap keys.

    Returns:
        The workload's credentials, or ``fallback`` if either is missing.

    Raises:
        StateError: If a referenced Secret value is not base64-encoded text.
        KubernetesError: If a referenced Secret or ConfigMap cannot be read.
    """
    containers = _containers(workload.manifest)
    if not containers:
        return fallback

    values: dict[str, str | None] = {}
    for env in containers[0].get("env") or []:
        if env.get("name") in (USERNAME_ENV, PASSWORD_ENV):
            values[env["name"]] = _resolve_env(cluster, workload.namespace, env)

    username, password = values.get(USERNAME_ENV), values.get(PASSWORD_ENV)
    if not username or not password:
        logger.debug("No root credentials in %s; using configured credentials", workload.key)
        return fallback
    logger.debug("Using root credentials of %s (user %s)", workload.key, username)
    return MongoCredentials(username=username, password=password)


__all__ = [
    "discover_workloads",
    "credentials_for_workload",
    "workload_from_stateful_set",
    "OPERATOR_OWNER_KIND",
]
