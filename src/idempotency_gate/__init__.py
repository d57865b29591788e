"""
Idempotency gate for Python web applications.

This package short-circuits retried mutating requests (POST, PUT, PATCH,
DELETE) that carry an Idempotency-Key already claimed within a fixed time
window. Claims are made with a single atomic conditional write in a shared
key store, so concurrent duplicates cannot both proceed.
"""

from idempotency_gate.config import IdempotencyConfig
from idempotency_gate.core.gate import GateResponse, IdempotencyGate, Request
from idempotency_gate.exceptions import (
    ConfigurationError,
    IdempotencyError,
    StorageError,
    StoreTimeoutError,
)
from idempotency_gate.models import ClaimOutcome, GateDecision
from idempotency_gate.storage import KeyStore, MemoryKeyStore, RedisKeyStore

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ClaimOutcome",
    "ConfigurationError",
    "GateDecision",
    "GateResponse",
    "IdempotencyConfig",
    "IdempotencyError",
    "IdempotencyGate",
    "KeyStore",
    "MemoryKeyStore",
    "RedisKeyStore",
    "Request",
    "StorageError",
    "StoreTimeoutError",
]
