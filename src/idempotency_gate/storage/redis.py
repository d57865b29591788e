"""Redis key store.

Claims are Redis keys of the form ``<key_prefix><token>`` holding the marker
value "1". A claim is one ``SET key 1 NX PX <ttl_ms>`` command, so Redis
itself totally orders concurrent claims on the same token, and the key
disappears when its TTL elapses.

Examples:
    Building a store from environment configuration::

        from idempotency_gate.config import IdempotencyConfig
        from idempotency_gate.storage.redis import RedisKeyStore

        # Requires IDEMPOTENCE_REDIS_HOST and IDEMPOTENCE_REDIS_PORT
        store = RedisKeyStore.from_config(IdempotencyConfig.from_env())

        outcome = await store.try_claim("abc", ttl_seconds=180)

    Reusing an existing client::

        from redis.asyncio import Redis

        store = RedisKeyStore(Redis(host="localhost", port=6379))
"""

import asyncio
import time
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from idempotency_gate.config import KEY_PREFIX, IdempotencyConfig
from idempotency_gate.exceptions import StorageError, StoreTimeoutError
from idempotency_gate.models import ClaimOutcome
from idempotency_gate.observability.logging import get_logger, scrub_token
from idempotency_gate.observability.metrics import record_store_operation
from idempotency_gate.observability.tracing import Tracer, resolve_tracer
from idempotency_gate.storage.base import KeyStore, validate_claim_args

logger = get_logger(__name__)

CLAIM_MARKER = "1"


class RedisKeyStore(KeyStore):
    """Key store backed by Redis.

    Attributes:
        _client: redis.asyncio client (or any object with the same async
            set/exists/aclose methods).
        _key_prefix: Prefix prepended to tokens.
        _tracer: Span producer for store calls.
    """

    def __init__(
        self,
        client: Any,
        key_prefix: str = KEY_PREFIX,
        tracer: Tracer | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize the store around an existing client.

        Args:
            client: An async Redis client.
            key_prefix: Prefix prepended to tokens to build Redis keys.
            tracer: Optional tracer; defaults to the no-op tracer.
            timeout_seconds: Socket timeout the client was built with, if
                known. Reported on StoreTimeoutError.
        """
        self._client = client
        self._key_prefix = key_prefix
        self._tracer = resolve_tracer(tracer)
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_config(
        cls,
        config: IdempotencyConfig,
        tracer: Tracer | None = None,
    ) -> "RedisKeyStore":
        """Create a store connected to the Redis address in config.

        The client's socket timeouts follow config.store_timeout_seconds so a
        slow server cannot hold a connection longer than the gate waits.

        Raises:
            ConfigurationError: If the Redis host or port is missing.
        """
        host, port = config.redis_address()
        client = Redis(
            host=host,
            port=port,
            db=config.redis_db,
            password=config.redis_password,
            socket_timeout=config.store_timeout_seconds,
            socket_connect_timeout=config.store_timeout_seconds,
            decode_responses=True,
        )
        logger.info("store.redis_configured", host=host, port=port, db=config.redis_db)
        return cls(
            client,
            key_prefix=config.key_prefix,
            tracer=tracer,
            timeout_seconds=config.store_timeout_seconds,
        )

    def key_for(self, token: str) -> str:
        """Return the Redis key for a token."""
        return f"{self._key_prefix}{token}"

    async def try_claim(self, token: str, ttl_seconds: float) -> ClaimOutcome:
        """Claim a token with a single SET NX PX command.

        Args:
            token: Non-empty idempotency token.
            ttl_seconds: Lifetime of the claim in seconds.

        Returns:
            CLAIMED if Redis created the key, ALREADY_CLAIMED otherwise.

        Raises:
            StoreTimeoutError: If Redis did not answer in time.
            StorageError: For any other Redis failure.
        """
        validate_claim_args(token, ttl_seconds)
        ttl_ms = max(1, int(ttl_seconds * 1000))

        with self._tracer.start_span("RedisKeyStore.try_claim") as span:
            span.set_attribute("idempotency.ttl_ms", ttl_ms)
            start = time.perf_counter()
            try:
                created = await self._client.set(
                    self.key_for(token),
                    CLAIM_MARKER,
                    nx=True,
                    px=ttl_ms,
                )
            except RedisError as e:
                span.record_error(e)
                raise self._wrap_error("try_claim", token, e, time.perf_counter() - start) from e
            except asyncio.CancelledError as e:
                # Caller gave up, usually the gate's timeout
                span.record_error(e)
                raise

            outcome = ClaimOutcome.CLAIMED if created else ClaimOutcome.ALREADY_CLAIMED
            span.set_attribute("idempotency.claim_outcome", outcome.value)
            record_store_operation("try_claim", outcome.value.lower(), time.perf_counter() - start)
            return outcome

    async def exists(self, token: str) -> bool:
        """Return True if the token's key is present. Diagnostic only.

        Raises:
            StorageError: If Redis fails.
        """
        with self._tracer.start_span("RedisKeyStore.exists") as span:
            start = time.perf_counter()
            try:
                count = await self._client.exists(self.key_for(token))
            except RedisError as e:
                span.record_error(e)
                raise self._wrap_error("exists", token, e, time.perf_counter() - start) from e
            except asyncio.CancelledError as e:
                span.record_error(e)
                raise

            found = count == 1
            span.set_attribute("idempotency.exists", found)
            record_store_operation("exists", "hit" if found else "miss", time.perf_counter() - start)
            return found

    async def close(self) -> None:
        """Close the Redis client and its connection pool."""
        await self._client.aclose()

    def _wrap_error(
        self,
        operation: str,
        token: str,
        error: RedisError,
        duration_seconds: float,
    ) -> StorageError:
        """Translate a Redis exception into a StorageError and record it."""
        if isinstance(error, RedisTimeoutError):
            record_store_operation(operation, "timeout", duration_seconds)
            return StoreTimeoutError(
                f"Redis {operation} timed out: {error}",
                timeout_seconds=self._timeout_seconds,
                cause=error,
            )

        record_store_operation(operation, "error", duration_seconds)
        logger.debug(
            "store.redis_error",
            operation=operation,
            token=scrub_token(token),
            error_type=type(error).__name__,
        )
        return StorageError(f"Redis {operation} failed: {error}", cause=error)
