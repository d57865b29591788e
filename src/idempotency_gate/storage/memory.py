"""In-memory key store.

This module provides a KeyStore kept in a Python dictionary. It is suitable
for single-process applications, development and tests. Claims are not
shared between processes; use RedisKeyStore for that.

Concurrency:
    - A threading.Lock guards the dictionary.
    - The lock is held only for the in-memory test-and-set, with no await
      inside, so the store works from any thread or event loop.

Expiry:
    - Expired records count as absent on every read.
    - purge_expired() drops them; run it periodically with
      idempotency_gate.core.cleanup.start_sweeper().

Examples:
    Basic usage::

        from idempotency_gate.storage.memory import MemoryKeyStore

        store = MemoryKeyStore()

        await store.try_claim("abc", ttl_seconds=180)  # ClaimOutcome.CLAIMED
        await store.try_claim("abc", ttl_seconds=180)  # ClaimOutcome.ALREADY_CLAIMED

    Controlling time in tests::

        now = datetime(2024, 1, 1, tzinfo=UTC)
        store = MemoryKeyStore(clock=lambda: now)
"""

import threading
from collections.abc import Callable
from datetime import UTC, datetime

from idempotency_gate.models import ClaimOutcome, ClaimRecord
from idempotency_gate.observability.metrics import record_store_operation
from idempotency_gate.observability.tracing import Tracer, resolve_tracer
from idempotency_gate.storage.base import KeyStore, validate_claim_args


def _utcnow() -> datetime:
    return datetime.now(UTC)


class MemoryKeyStore(KeyStore):
    """In-memory key store with lock-protected atomic claims.

    Attributes:
        _records: Dictionary mapping tokens to ClaimRecord objects.
        _lock: Lock protecting _records.
        _clock: Returns the current UTC time.
        _tracer: Span producer for store calls.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = _utcnow,
        tracer: Tracer | None = None,
    ) -> None:
        """Initialize an empty store.

        Args:
            clock: Returns the current time as an aware UTC datetime.
            tracer: Optional tracer; defaults to the no-op tracer.
        """
        self._records: dict[str, ClaimRecord] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._tracer = resolve_tracer(tracer)

    def __len__(self) -> int:
        """Number of stored records, expired ones included until purged."""
        return len(self._records)

    async def try_claim(self, token: str, ttl_seconds: float) -> ClaimOutcome:
        """Atomically claim a token for ttl_seconds.

        The existence test and the insert happen under one lock acquisition,
        so concurrent callers are totally ordered and exactly one wins.

        Args:
            token: Non-empty idempotency token.
            ttl_seconds: Lifetime of the claim in seconds.

        Returns:
            CLAIMED or ALREADY_CLAIMED.
        """
        validate_claim_args(token, ttl_seconds)

        with self._tracer.start_span("MemoryKeyStore.try_claim") as span:
            with self._lock:
                now = self._clock()
                existing = self._records.get(token)
                if existing is not None and not existing.is_expired(now):
                    outcome = ClaimOutcome.ALREADY_CLAIMED
                else:
                    # Absent or expired: this caller claims it
                    self._records[token] = ClaimRecord.for_ttl(token, ttl_seconds, now)
                    outcome = ClaimOutcome.CLAIMED

            span.set_attribute("idempotency.claim_outcome", outcome.value)
            record_store_operation("try_claim", outcome.value.lower())
            return outcome

    async def exists(self, token: str) -> bool:
        """Return True if a live claim exists for token. Diagnostic only."""
        with self._tracer.start_span("MemoryKeyStore.exists") as span:
            with self._lock:
                record = self._records.get(token)
                found = record is not None and not record.is_expired(self._clock())

            span.set_attribute("idempotency.exists", found)
            record_store_operation("exists", "hit" if found else "miss")
            return found

    async def purge_expired(self) -> int:
        """Remove expired records.

        Returns:
            The number of records removed.
        """
        with self._lock:
            now = self._clock()
            expired = [token for token, record in self._records.items() if record.is_expired(now)]
            for token in expired:
                del self._records[token]

        return len(expired)

    async def close(self) -> None:
        """Nothing to release for an in-memory store."""
