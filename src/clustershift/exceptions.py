"""
Exceptions raised by clustershift.

Every component reports failure by raising one of the exceptions below rather
than handling it locally. The per-workload state machine stops at the first
failure and wraps it in a WorkloadMigrationError; only the command line entry
point turns an error into a non-zero exit status.

Exception Hierarchy:
    ClusterShiftError (base)
    +-- ExecutionError
    +-- ParseError
    +-- WaitTimeoutError
    +-- StateError
    |   +-- InvalidStateTransitionError
    +-- KubernetesError
    +-- UnsupportedNetworkingToolError
    +-- WorkloadMigrationError

Error Classification:
    Each exception class carries an ErrorClassification describing its
    severity, whether a re-run can be expected to succeed, a stable error
    code and a suggested operator action.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from clustershift.mongo.models import MigrationState


class ErrorSeverity(Enum):
    """
    Severity level of clustershift errors.

    Attributes:
        CRITICAL: The replica set may have been left in a mixed state.
        ERROR: The operation failed and the run must stop.
        WARNING: Worth a look; a re-run usually gets past it.
    """

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"

    @property
    def log_level(self) -> int:
        """
        Level the CLI logs this severity at.

        Returns:
            A ``logging`` level such as ``logging.ERROR``.
        """
        level_map = {
            ErrorSeverity.CRITICAL: logging.CRITICAL,
            ErrorSeverity.ERROR: logging.ERROR,
            ErrorSeverity.WARNING: logging.WARNING,
        }
        return level_map[self]


class ErrorRecoverability(Enum):
    """
    Recoverability classification.

    Attributes:
        TRANSIENT: Re-running the migration is expected to succeed, because
            every transition re-reads the live replica-set configuration.
        RECOVERABLE: Operator action is needed before a re-run.
        FATAL: The input or environment is unsupported.
    """

    TRANSIENT = "transient"
    RECOVERABLE = "recoverable"
    FATAL = "fatal"

    @property
    def should_rerun(self) -> bool:
        """True if a plain re-run is likely to complete the migration."""
        return self == ErrorRecoverability.TRANSIENT


@dataclass(frozen=True)
class ErrorClassification:
    """
    Metadata describing a class of errors.

    Attributes:
        severity: How loudly to report it.
        recoverability: Whether re-running can get past it.
        error_code: Stable identifier, e.g. ``COMMAND_EXECUTION_FAILED``.
        category: Area that failed, e.g. "command" or "kubernetes".
        suggested_action: What an operator should do next.
    """

    severity: ErrorSeverity
    recoverability: ErrorRecoverability
    error_code: str
    category: str
    suggested_action: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for structured logging."""
        return {
            "severity": self.severity.value,
            "recoverability": self.recoverability.value,
            "error_code": self.error_code,
            "category": self.category,
            "suggested_action": self.suggested_action,
        }


class ClusterShiftError(Exception):
    """
    Base exception for all clustershift errors.

    Attributes:
        message: What went wrong.
        workload: "namespace/name" of the workload involved, if any.
        suggested_action: Suggested action overriding the class default.
    """

    _default_classification = ErrorClassification(
        severity=ErrorSeverity.ERROR,
        recoverability=ErrorRecoverability.FATAL,
        error_code="CLUSTERSHIFT_ERROR",
        category="general",
        suggested_action="Review the migration log",
    )

    def __init__(
        self,
        message: str,
        *,
        workload: str | None = None,
        suggested_action: str | None = None,
    ) -> None:
        self.message = message
        self.workload = workload
        self.suggested_action = suggested_action
        super().__init__(message)

    def __str__(self) -> str:
        """Message followed by the workload it concerns."""
        if self.workload:
            return f"{self.message} workload={self.workload}"
        return self.message

    @property
    def classification(self) -> ErrorClassification:
        """Classification metadata for this error class."""
        return self._default_classification

    @property
    def severity(self) -> ErrorSeverity:
        return self.classification.severity

    @property
    def recoverability_type(self) -> ErrorRecoverability:
        return self.classification.recoverability

    @property
    def error_code(self) -> str:
        return self.classification.error_code

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the exception to a dictionary.

        Returns:
            Message, workload and classification as plain values.
        """
        return {
            "message": self.message,
            "workload": self.workload,
            "error_code": self.error_code,
            "suggested_action": self.suggested_action or self.classification.suggested_action,
            "classification": self.classification.to_dict(),
        }


class ExecutionError(ClusterShiftError):
    """
    Raised when an administrative command fails.

    Covers both transport failures (the exec call into the worker pod did not
    complete) and engine-reported failures (the shell wrote to stderr).

    Attributes:
        command: The command string that was evaluated.
        host: The data-store host the command was addressed to.
        stderr: Whatever the engine wrote to its error stream.
    """

    _default_classification = ErrorClassification(
        severity=ErrorSeverity.ERROR,
        recoverability=ErrorRecoverability.TRANSIENT,
        error_code="COMMAND_EXECUTION_FAILED",
        category="command",
        suggested_action="Check connectivity to the worker pod and the engine error output",
    )

    def __init__(
        self,
        message: str,
        *,
        command: str | None = None,
        host: str | None = None,
        stderr: str = "",
    ) -> None:
        self.command = command
        self.host = host
        self.stderr = stderr
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)


class ParseError(ClusterShiftError):
    """
    Raised when engine output does not contain a decodable JSON document.

    Attributes:
        output: The raw text that could not be parsed.
    """

    _default_classification = ErrorClassification(
        severity=ErrorSeverity.ERROR,
        recoverability=ErrorRecoverability.RECOVERABLE,
        error_code="RESPONSE_PARSE_FAILED",
        category="command",
        suggested_action="Inspect the raw shell output; the shell version may print unexpected text",
    )

    def __init__(self, message: str, *, output: str = "") -> None:
        self.output = output
        super().__init__(message)


class WaitTimeoutError(ClusterShiftError):
    """
    Raised when a readiness poll deadline elapses.

    Attributes:
        description: What was being waited for.
        timeout: The configured deadline in seconds.
        elapsed: Seconds actually spent polling.
    """

    _default_classification = ErrorClassification(
        severity=ErrorSeverity.ERROR,
        recoverability=ErrorRecoverability.TRANSIENT,
        error_code="WAIT_TIMEOUT",
        category="readiness",
        suggested_action="Check member sync progress, then re-run; completed steps are skipped",
    )

    def __init__(self, description: str, *, timeout: float, elapsed: float) -> None:
        self.description = description
        self.timeout = timeout
        self.elapsed = elapsed
        super().__init__(f"Timed out after {elapsed:.1f}s waiting for {description}")


class StateError(ClusterShiftError):
    """
    Raised when a required precondition does not hold.

    Examples: no member reports PRIMARY, no service selects the workload's
    pods, a member host is not a workload-local DNS name.
    """

    _default_classification = ErrorClassification(
        severity=ErrorSeverity.ERROR,
        recoverability=ErrorRecoverability.RECOVERABLE,
        error_code="PRECONDITION_FAILED",
        category="state",
        suggested_action="Inspect the workload and replica set before re-running",
    )


class InvalidStateTransitionError(StateError):
    """
    Raised when the membership state machine is asked to skip a state.

    Attributes:
        current_state: The state the run is in.
        target_state: The state that was requested.
    """

    _default_classification = ErrorClassification(
        severity=ErrorSeverity.CRITICAL,
        recoverability=ErrorRecoverability.FATAL,
        error_code="INVALID_STATE_TRANSITION",
        category="state",
        suggested_action="Report a bug; states must be entered strictly in order",
    )

    def __init__(
        self,
        current_state: MigrationState,
        target_state: MigrationState,
        *,
        workload: str | None = None,
    ) -> None:
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(
            f"Invalid state transition: {current_state.value} -> {target_state.value}",
            workload=workload,
        )


class KubernetesError(ClusterShiftError):
    """
    Raised when the Kubernetes API rejects a resource operation.

    Attributes:
        kind: Resource kind name.
        name: Resource name, if the operation targeted one.
        namespace: Resource namespace, if namespaced.
        status: HTTP status reported by the API server, if any.
    """

    _default_classification = ErrorClassification(
        severity=ErrorSeverity.ERROR,
        recoverability=ErrorRecoverability.TRANSIENT,
        error_code="KUBERNETES_API_ERROR",
        category="kubernetes",
        suggested_action="Check cluster access and RBAC for the kubeconfig in use",
    )

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        name: str | None = None,
        namespace: str | None = None,
        status: int | None = None,
    ) -> None:
        self.kind = kind
        self.name = name
        self.namespace = namespace
        self.status = status
        super().__init__(message)


class UnsupportedNetworkingToolError(ClusterShiftError):
    """Raised when no networking capability exists for the requested tool."""

    _default_classification = ErrorClassification(
        severity=ErrorSeverity.ERROR,
        recoverability=ErrorRecoverability.FATAL,
        error_code="UNSUPPORTED_NETWORKING_TOOL",
        category="configuration",
        suggested_action="Choose one of: submariner, skupper, linkerd",
    )

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(f"Unsupported networking tool: {tool}")


class WorkloadMigrationError(ClusterShiftError):
    """
    Raised when a workload's migration run stops.

    Wraps the first failure of the run and records the state that was being
    entered when it happened, or PENDING if the migration context could not
    be built. The original exception is kept as ``cause``
    and chained as ``__cause__``.

    Attributes:
        state: The state the run failed to reach.
        cause: The underlying exception.
    """

    _default_classification = ErrorClassification(
        severity=ErrorSeverity.CRITICAL,
        recoverability=ErrorRecoverability.RECOVERABLE,
        error_code="WORKLOAD_MIGRATION_FAILED",
        category="migration",
        suggested_action=(
            "The replica set may contain both origin and target members. "
            "Inspect rs.status() and re-run; completed steps are skipped"
        ),
    )

    def __init__(self, workload: str, state: MigrationState, cause: Exception) -> None:
        self.state = state
        self.cause = cause
        super().__init__(
            f"Migration of {workload} failed at {state.value}: {cause}",
            workload=workload,
        )

    def __str__(self) -> str:
        return self.message

    @property
    def recoverability_type(self) -> ErrorRecoverability:
        if isinstance(self.cause, ClusterShiftError):
            return self.cause.recoverability_type
        return self.classification.recoverability

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["state"] = self.state.value
        if isinstance(self.cause, ClusterShiftError):
            data["cause"] = self.cause.to_dict()
        else:
            data["cause"] = str(self.cause)
        return data


__all__ = [
    "ErrorSeverity",
    "ErrorRecoverability",
    "ErrorClassification",
    "ClusterShiftError",
    "ExecutionError",
    "ParseError",
    "WaitTimeoutError",
    "StateError",
    "InvalidStateTransitionError",
    "KubernetesError",
    "UnsupportedNetworkingToolError",
    "WorkloadMigrationError",
]
