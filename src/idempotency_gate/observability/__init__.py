"""Observability utilities for the idempotency gate.

This package provides:
- Prometheus metrics for gate decisions and key store calls
- Structured logging with token scrubbing
- The tracing seam (Tracer protocol and its no-op implementation)
"""

from idempotency_gate.observability.logging import configure_logging, get_logger, scrub_token
from idempotency_gate.observability.metrics import (
    record_decision,
    record_store_operation,
    record_sweep,
)
from idempotency_gate.observability.tracing import (
    NOOP_TRACER,
    NoopTracer,
    Span,
    Tracer,
    resolve_tracer,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "scrub_token",
    "record_decision",
    "record_store_operation",
    "record_sweep",
    "Span",
    "Tracer",
    "NoopTracer",
    "NOOP_TRACER",
    "resolve_tracer",
]
