"""
Configuration for clustershift migrations.

MigrationConfig holds every interval, timeout and name the migration engine
uses. It is immutable so a run cannot change its own limits halfway through.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

USERNAME_ENV_VAR = "CLUSTERSHIFT_MONGO_USERNAME"
PASSWORD_ENV_VAR = "CLUSTERSHIFT_MONGO_PASSWORD"


@dataclass(frozen=True)
class MongoCredentials:
    """
    Opaque credentials passed through to the administrative shell.

    Attributes:
        username: Database user with clusterAdmin rights.
        password: Password for that user.
        auth_source: Authentication database.
    """

    username: str
    password: str
    auth_source: str = "admin"

    def __repr__(self) -> str:
        return f"MongoCredentials(username={self.username!r}, auth_source={self.auth_source!r})"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> MongoCredentials | None:
        """
        Read credentials from the environment.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            MongoCredentials if both variables are set, None otherwise.
        """
        env = os.environ if environ is None else environ
        username = env.get(USERNAME_ENV_VAR)
        password = env.get(PASSWORD_ENV_VAR)
        if not username or not password:
            return None
        return cls(username=username, password=password)


@dataclass(frozen=True)
class MigrationConfig:
    """
    Configuration for replica-set migrations.

    Attributes:
        poll_interval: Seconds between member state and election polls.
        secondary_timeout: Seconds each new member may take to reach SECONDARY.
        election_timeout: Seconds to wait for a target member to become primary.
        workload_ready_timeout: Seconds to wait for the target StatefulSet.
        client_pod_ready_timeout: Seconds to wait for the worker pod.
        resource_poll_interval: Seconds between Kubernetes readiness polls.
        networking_settle_seconds: Pause after exporting services.
        mongo_port: Port appended to rewritten member hosts.
        image_signature: Image substring that identifies a workload.
        client_namespace: Namespace of the administrative worker pod.
        client_pod_name: Name of the administrative worker pod.
        client_container: Container name inside the worker pod.
        client_image: Image of the administrative worker pod.
        electable_priority: Priority given to target members.
        non_electable_priority: Priority given to origin members.
        cleanup_client_pods: Delete worker pods when the driver finishes.

    Example:
        >>> config = MigrationConfig(poll_interval=2.0, secondary_timeout=900)
        >>> config.secondary_timeout
        900
    """

    poll_interval: float = 5.0
    secondary_timeout: float = 600.0
    election_timeout: float = 600.0
    workload_ready_timeout: float = 600.0
    client_pod_ready_timeout: float = 300.0
    resource_poll_interval: float = 2.0
    networking_settle_seconds: float = 30.0
    mongo_port: int = 27017
    image_signature: str = "mongo"
    client_namespace: str = "default"
    client_pod_name: str = "mongosh-client"
    client_container: str = "mongosh-client"
    client_image: str = "mongo:latest"
    electable_priority: int = 1
    non_electable_priority: int = 0
    cleanup_client_pods: bool = True

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.poll_interval < 0:
            raise ValueError(f"poll_interval must be >= 0, got {self.poll_interval}")
        if self.resource_poll_interval < 0:
            raise ValueError(
                f"resource_poll_interval must be >= 0, got {self.resource_poll_interval}"
            )
        for name in (
            "secondary_timeout",
            "election_timeout",
            "workload_ready_timeout",
            "client_pod_ready_timeout",
        ):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be > 0, got {value}")
        if self.networking_settle_seconds < 0:
            raise ValueError(
                f"networking_settle_seconds must be >= 0, got {self.networking_settle_seconds}"
            )
        if not 0 < self.mongo_port < 65536:
            raise ValueError(f"mongo_port must be a valid TCP port, got {self.mongo_port}")
        if not self.image_signature:
            raise ValueError("image_signature must not be empty")
        if self.electable_priority <= self.non_electable_priority:
            raise ValueError(
                f"electable_priority ({self.electable_priority}) must be greater than "
                f"non_electable_priority ({self.non_electable_priority})"
            )
        if self.non_electable_priority < 0:
            raise ValueError(
                f"non_electable_priority must be >= 0, got {self.non_electable_priority}"
            )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary.

        Returns:
            Dictionary with one entry per field.
        """
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigrationConfig:
        """
        Create from dictionary, ignoring unknown keys.

        Args:
            data: Dictionary containing configuration values.

        Returns:
            MigrationConfig instance.
        """
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


__all__ = [
    "MigrationConfig",
    "MongoCredentials",
    "USERNAME_ENV_VAR",
    "PASSWORD_ENV_VAR",
]
