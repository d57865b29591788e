"""Prometheus metrics for the idempotency gate.

Metrics include:

- Gate decisions by outcome (bypassed, claimed, already claimed, ...)
- Key store operations by operation and outcome
- Key store latency histogram
- Expired records removed by the sweeper

Examples:
    Recording a short-circuited request::

        from idempotency_gate.observability.metrics import record_decision

        record_decision(GateDecision.ALREADY_CLAIMED)

    Recording a store call::

        from idempotency_gate.observability.metrics import record_store_operation

        record_store_operation("try_claim", "claimed", duration_seconds=0.002)
"""

from prometheus_client import Counter, Histogram

from idempotency_gate.models import GateDecision

# Labels: decision (BYPASSED, UNPROTECTED, CLAIMED, ALREADY_CLAIMED, FAILED_OPEN, FAILED_CLOSED)
decisions_total = Counter(
    "idempotency_gate_decisions_total",
    "Total number of requests seen by the idempotency gate, by decision",
    ["decision"],
)

# Labels: operation (try_claim, exists), outcome (claimed, already_claimed, hit, miss, error, timeout)
store_operations_total = Counter(
    "idempotency_store_operations_total",
    "Total number of key store operations",
    ["operation", "outcome"],
)

store_latency_seconds = Histogram(
    "idempotency_store_latency_seconds",
    "Key store operation latency in seconds",
    ["operation"],
    buckets=[
        0.0005,
        0.001,
        0.0025,
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
    ],  # 0.5ms to 1s
)

sweeper_runs_total = Counter(
    "idempotency_sweeper_runs_total",
    "Total number of expiry sweeps performed",
)

sweeper_records_removed_total = Counter(
    "idempotency_sweeper_records_removed_total",
    "Total number of expired claim records removed by the sweeper",
)


def record_decision(decision: GateDecision) -> None:
    """Record one gate decision.

    Examples:
        >>> record_decision(GateDecision.CLAIMED)
    """
    decisions_total.labels(decision=decision.value).inc()


def record_store_operation(
    operation: str,
    outcome: str,
    duration_seconds: float | None = None,
) -> None:
    """Record a key store operation and, if known, its latency.

    Args:
        operation: Store operation name (try_claim, exists)
        outcome: Result label (claimed, already_claimed, hit, miss, error, timeout)
        duration_seconds: Wall time spent in the call
    """
    store_operations_total.labels(operation=operation, outcome=outcome).inc()
    if duration_seconds is not None:
        store_latency_seconds.labels(operation=operation).observe(duration_seconds)


def record_sweep(records_removed: int) -> None:
    """Record an expiry sweep.

    Examples:
        >>> record_sweep(42)
    """
    sweeper_runs_total.inc()
    sweeper_records_removed_total.inc(records_removed)
