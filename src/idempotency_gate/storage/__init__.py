"""Key stores for the idempotency gate.

All stores implement the KeyStore protocol defined in base.py.

Available Stores:
    - RedisKeyStore: Redis-backed store shared by every server process
    - MemoryKeyStore: In-process store for development and tests
"""

from idempotency_gate.storage.base import KeyStore
from idempotency_gate.storage.memory import MemoryKeyStore
from idempotency_gate.storage.redis import RedisKeyStore

__all__ = [
    "KeyStore",
    "MemoryKeyStore",
    "RedisKeyStore",
]
