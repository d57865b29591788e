"""Tracing seam for the idempotency gate.

The gate and its key stores open one span per decision and per store call.
Tracing is optional: when no tracer is supplied, NoopTracer is used, so the
calling code never checks whether tracing is enabled.

Any object with a start_span(name) method returning a context manager that
yields a Span works. Adapting an OpenTelemetry tracer is a few lines::

    from opentelemetry.trace import Status, StatusCode

    class OtelSpan:
        def __init__(self, span):
            self._span = span

        def set_attribute(self, key, value):
            self._span.set_attribute(key, value)

        def record_error(self, error):
            self._span.record_exception(error)
            self._span.set_status(Status(StatusCode.ERROR, str(error)))

    class OtelTracer:
        def __init__(self, tracer):
            self._tracer = tracer

        @contextmanager
        def start_span(self, name):
            with self._tracer.start_as_current_span(name) as span:
                yield OtelSpan(span)
"""

from contextlib import AbstractContextManager, nullcontext
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Span(Protocol):
    """A unit of traced work."""

    def set_attribute(self, key: str, value: Any) -> None:
        """Attach a key/value attribute to the span."""
        ...

    def record_error(self, error: BaseException) -> None:
        """Record an exception and mark the span as failed."""
        ...


@runtime_checkable
class Tracer(Protocol):
    """Produces spans. The span ends when its context manager exits."""

    def start_span(self, name: str) -> AbstractContextManager[Span]:
        """Open a child span named after the operation."""
        ...


class NoopSpan:
    """Span that discards everything."""

    def set_attribute(self, key: str, value: Any) -> None:
        pass

    def record_error(self, error: BaseException) -> None:
        pass


class NoopTracer:
    """Tracer used when tracing is disabled.

    Returns one shared, reusable context manager so a disabled trace costs a
    method call and nothing else.
    """

    def __init__(self) -> None:
        self._span_cm: AbstractContextManager[Span] = nullcontext(NoopSpan())

    def start_span(self, name: str) -> AbstractContextManager[Span]:
        return self._span_cm


NOOP_TRACER = NoopTracer()


def resolve_tracer(tracer: Tracer | None) -> Tracer:
    """Return the given tracer, or the shared no-op tracer for None."""
    return NOOP_TRACER if tracer is None else tracer
