"""Key store protocol for the idempotency gate.

This module defines the interface every key store backend must implement.
A key store owns exactly one thing: the time-bounded record that a token has
been claimed. It exposes a single atomic claim primitive rather than a
separate check and write.

Examples:
    Implementing a custom key store::

        from idempotency_gate.models import ClaimOutcome

        class MyKeyStore:
            async def try_claim(self, token: str, ttl_seconds: float) -> ClaimOutcome:
                created = await self.backend.insert_if_absent(token, ttl=ttl_seconds)
                return ClaimOutcome.CLAIMED if created else ClaimOutcome.ALREADY_CLAIMED

            async def exists(self, token: str) -> bool:
                return await self.backend.contains(token)

            async def close(self) -> None:
                await self.backend.disconnect()

Atomicity Requirements:
    All KeyStore implementations MUST guarantee:

    1. **Atomic claim**: try_claim() tests and sets in one backend operation
       (Redis SET NX, SQL INSERT ... ON CONFLICT DO NOTHING, a lock-protected
       dict update). Calling exists() and then writing is a race: two
       concurrent callers can both observe absence and both proceed.

    2. **Total order per token**: of N concurrent try_claim() calls for the
       same token, exactly one returns CLAIMED.

    3. **Expiry**: a record whose TTL has elapsed counts as absent, so the
       next try_claim() returns CLAIMED again.

    4. **Append-then-expire**: records are never updated or deleted by
       callers. There is no delete operation.

    5. **Error wrapping**: backend failures raise StorageError (or
       StoreTimeoutError). Backend-specific exceptions must not leak.
"""

from typing import Protocol, runtime_checkable

from idempotency_gate.models import ClaimOutcome


@runtime_checkable
class KeyStore(Protocol):
    """Protocol defining the interface for idempotency key stores.

    All methods are async and must be safe to call concurrently from many
    asyncio tasks, threads and processes.
    """

    async def try_claim(self, token: str, ttl_seconds: float) -> ClaimOutcome:
        """Atomically claim a token for ttl_seconds.

        Args:
            token: Non-empty idempotency token.
            ttl_seconds: Lifetime of the claim in seconds. Must be positive.

        Returns:
            CLAIMED if the token was absent and is now claimed,
            ALREADY_CLAIMED if a live claim already exists.

        Raises:
            ValueError: If token is empty or ttl_seconds is not positive.
            StorageError: If the backend is unavailable.
        """
        ...

    async def exists(self, token: str) -> bool:
        """Return True if a live claim exists for token.

        For diagnostics only. Never use this to decide whether to claim.

        Raises:
            StorageError: If the backend is unavailable.
        """
        ...

    async def close(self) -> None:
        """Release backend resources."""
        ...


def validate_claim_args(token: str, ttl_seconds: float) -> None:
    """Check try_claim() preconditions.

    Raises:
        ValueError: If token is empty or ttl_seconds is not positive.
    """
    if not token:
        raise ValueError("Idempotency token cannot be empty")
    if ttl_seconds <= 0:
        raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
