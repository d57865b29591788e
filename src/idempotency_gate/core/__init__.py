"""Core logic of the idempotency gate.

This package contains:
- Gate: framework-agnostic per-request decision (bypass, claim, short-circuit)
- Cleanup: background sweeper for stores without native expiry

The core logic is framework-agnostic and is wrapped by adapters for
specific web frameworks.
"""

from idempotency_gate.core.cleanup import start_sweeper, stop_sweeper
from idempotency_gate.core.gate import GateResponse, IdempotencyGate, Request

__all__ = [
    "GateResponse",
    "IdempotencyGate",
    "Request",
    "start_sweeper",
    "stop_sweeper",
]
