"""
Span creation for clustershift components.

Every long-running component takes a ``tracer`` argument and opens one span
per state, administrative command and poll. Production code gets an
OpenTelemetryTracer; tests pass a MockTracer and assert on the recorded
span names.

Example:
    >>> from clustershift.observability import create_tracer, NullTracer
    >>>
    >>> class ReplicaSetAdmin:
    ...     def __init__(self, channel, tracer: Tracer | None = None):
    ...         self._tracer = tracer or create_tracer(__name__)
    ...
    ...     def add_member(self, primary: str, host: str) -> None:
    ...         with self._tracer.span("clustershift.admin.add_member", {"member.host": host}):
    ...             ...
"""

from __future__ import annotations

import contextlib
from collections.abc import Generator
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from opentelemetry import trace

if TYPE_CHECKING:
    from opentelemetry.trace import Span


@runtime_checkable
class Tracer(Protocol):
    """
    What a component needs from a tracer.

    NullTracer opens nothing, OpenTelemetryTracer delegates to the
    OpenTelemetry API and MockTracer keeps a list for assertions.
    """

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span | None]:
        """
        Open a span around a block.

        Args:
            name: Dotted span name, ``clustershift.<component>.<operation>``
            attributes: Initial span attributes, usually ``ATTR_*`` keys

        Returns:
            Context manager yielding the live span, or None when nothing
            records it
        """
        ...

    @property
    def enabled(self) -> bool:
        """Whether spans are actually exported."""
        ...


class NullTracer:
    """
    Tracer that opens no spans; used with ``--no-tracing``.

    Example:
        >>> with NullTracer().span("clustershift.admin.status") as span:
        ...     assert span is None
    """

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Generator[None, None, None]:
        yield None

    @property
    def enabled(self) -> bool:
        return False


class OpenTelemetryTracer:
    """
    Tracer backed by the OpenTelemetry API.

    Spans go to whatever tracer provider the process has configured; with no
    SDK installed the API hands out non-recording spans.

    Args:
        tracer_name: Instrumentation scope, normally the module ``__name__``
    """

    def __init__(self, tracer_name: str) -> None:
        self._tracer = trace.get_tracer(tracer_name)

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span | None]:
        """
        Start a span as the current span.

        Exceptions raised inside the block are recorded on the span and
        re-raised.
        """
        return self._tracer.start_as_current_span(name, attributes=attributes or {})

    @property
    def enabled(self) -> bool:
        return True


class MockTracer:
    """
    Records ``(name, attributes)`` pairs in the order spans were opened.

    Example:
        >>> tracer = MockTracer()
        >>> with tracer.span("clustershift.migrator.run", {"workload.name": "mongo"}):
        ...     pass
        >>> tracer.span_names
        ['clustershift.migrator.run']
    """

    def __init__(self) -> None:
        self.spans: list[tuple[str, dict[str, Any] | None]] = []

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Generator[None, None, None]:
        self.spans.append((name, attributes))
        yield None

    @property
    def enabled(self) -> bool:
        return True

    @property
    def span_names(self) -> list[str]:
        return [name for name, _ in self.spans]

    def clear(self) -> None:
        self.spans.clear()


def create_tracer(name: str, enable_tracing: bool = True) -> Tracer:
    """
    Pick the tracer for a component.

    Args:
        name: Instrumentation scope, normally the module ``__name__``
        enable_tracing: False selects NullTracer

    Returns:
        OpenTelemetryTracer or NullTracer
    """
    if enable_tracing:
        return OpenTelemetryTracer(name)
    return NullTracer()


__all__ = [
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "create_tracer",
]
