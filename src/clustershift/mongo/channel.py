"""
Command Channel: evaluating administrative commands inside a cluster.

A transient ``mongosh`` worker pod (ClientPod) is provisioned once per
cluster and reused for every workload. MongoShellChannel runs
``mongosh <uri> --quiet --eval <command>`` in that pod and returns stdout.

Anything the shell writes to stderr is a failed command, even when the exec
call itself succeeded; the engine reports semantic errors that way. There is
no retry at this layer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote_plus

from clustershift.config import MigrationConfig, MongoCredentials
from clustershift.exceptions import ExecutionError, KubernetesError, StateError
from clustershift.kube import ClusterClient, ResourceKind
from clustershift.mongo.translator import with_port
from clustershift.observability import (
    ATTR_CLUSTER_NAME,
    ATTR_MEMBER_HOST,
    NullTracer,
    Tracer,
)

logger = logging.getLogger(__name__)

MONGOSH = "mongosh"


@runtime_checkable
class CommandChannel(Protocol):
    """
    Protocol for anything that can evaluate an administrative command.

    Implementations:
    - MongoShellChannel: mongosh in a worker pod
    - FakeReplicaSet (tests): interprets commands against in-memory state
    """

    def execute(self, host: str, command: str) -> str:
        """
        Evaluate ``command`` against the data-store process at ``host``.

        Returns:
            Raw stdout text.

        Raises:
            ExecutionError: If the call fails or the engine writes to stderr.
        """
        ...


class ClientPod:
    """
    The administrative worker pod in one cluster.

    Args:
        cluster: Cluster to run the pod in.
        config: Supplies pod name, namespace, image and timeouts.
        sleep: Sleep function for readiness polling (injectable for tests).
        clock: Monotonic clock for the readiness deadline (injectable for tests).
    """

    def __init__(
        self,
        cluster: ClusterClient,
        config: MigrationConfig,
        *,
        sleep: Callable[[float], None] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._cluster = cluster
        self._config = config
        self._sleep = sleep
        self._clock = clock
        self._created = False
        self._ready = False

    @property
    def cluster(self) -> ClusterClient:
        return self._cluster

    @property
    def name(self) -> str:
        return self._config.client_pod_name

    @property
    def namespace(self) -> str:
        return self._config.client_namespace

    @property
    def container(self) -> str:
        return self._config.client_container

    @property
    def is_ready(self) -> bool:
        return self._ready

    def manifest(self) -> dict[str, Any]:
        """Pod manifest for the worker: ``sleep 3600`` in the shell image."""
        return {
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "labels": {"app": "mongosh-client", "role": "database-client"},
            },
            "spec": {
                "restartPolicy": "Never",
                "containers": [
                    {
                        "name": self.container,
                        "image": self._config.client_image,
                        "command": ["sleep", "3600"],
                        "resources": {
                            "requests": {"cpu": "100m", "memory": "128Mi"},
                            "limits": {"cpu": "200m", "memory": "256Mi"},
                        },
                    }
                ],
            },
        }

    def provision(self) -> None:
        """Create the pod if absent and wait until it is Ready."""
        self._cluster.create_if_absent(ResourceKind.POD, self.namespace, self.manifest())
        self._created = True
        self._cluster.wait_until_ready(
            ResourceKind.POD,
            self.name,
            self.namespace,
            timeout=self._config.client_pod_ready_timeout,
            interval=self._config.resource_poll_interval,
            sleep=self._sleep,
            clock=self._clock,
        )
        self._ready = True
        logger.info("Worker pod %s/%s ready in %s", self.namespace, self.name, self._cluster.name)

    def delete(self) -> None:
        """Delete the pod, ready or not. Does nothing if it was never created."""
        if not self._created:
            return
        self._cluster.delete(ResourceKind.POD, self.name, self.namespace)
        self._created = False
        self._ready = False


class MongoShellChannel:
    """
    CommandChannel that runs ``mongosh`` inside a ClientPod.

    Args:
        pod: The worker pod; must be provisioned before use.
        credentials: Opaque credentials added to the connection URI.
        port: Port appended to hosts that carry none.
        tracer: Optional tracer (defaults to NullTracer).
    """

    def __init__(
        self,
        pod: ClientPod,
        credentials: MongoCredentials | None = None,
        *,
        port: int = 27017,
        tracer: Tracer | None = None,
    ) -> None:
        self._pod = pod
        self._credentials = credentials
        self._port = port
        self._tracer = tracer or NullTracer()

    def with_credentials(self, credentials: MongoCredentials | None) -> MongoShellChannel:
        """Return a channel over the same pod that authenticates differently."""
        return MongoShellChannel(
            self._pod, credentials, port=self._port, tracer=self._tracer
        )

    def connection_uri(self, host: str) -> str:
        address = with_port(host, self._port)
        if self._credentials is None:
            return f"mongodb://{address}/admin"
        return (
            f"mongodb://{quote_plus(self._credentials.username)}:"
            f"{quote_plus(self._credentials.password)}@{address}/admin"
            f"?authSource={self._credentials.auth_source}"
        )

    def execute(self, host: str, command: str) -> str:
        if not self._pod.is_ready:
            raise StateError(
                f"Worker pod {self._pod.namespace}/{self._pod.name} in "
                f"{self._pod.cluster.name} is not ready"
            )

        argv = [MONGOSH, self.connection_uri(host), "--quiet", "--eval", command]
        attributes = {ATTR_MEMBER_HOST: host, ATTR_CLUSTER_NAME: self._pod.cluster.name}
        with self._tracer.span("clustershift.channel.execute", attributes):
            logger.debug("Evaluating against %s: %s", host, command)
            try:
                result = self._pod.cluster.exec_in_workload(
                    self._pod.namespace, self._pod.name, self._pod.container, argv
                )
            except KubernetesError as exc:
                raise ExecutionError(
                    f"Could not reach worker pod in {self._pod.cluster.name}: {exc}",
                    command=command,
                    host=host,
                ) from exc

        if result.stderr.strip():
            raise ExecutionError(
                f"Command against {host} failed",
                command=command,
                host=host,
                stderr=result.stderr,
            )
        logger.debug("Output from %s: %s", host, result.stdout)
        return result.stdout


__all__ = ["CommandChannel", "ClientPod", "MongoShellChannel", "MONGOSH"]
