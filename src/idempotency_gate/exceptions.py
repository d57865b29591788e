"""Custom exceptions for the idempotency gate.

This module defines the exception hierarchy used by the gate and its key
stores. Two families matter to callers:

- ConfigurationError is raised while wiring things up (missing Redis
  address, invalid settings) and never while serving requests.
- StorageError is raised by key stores when the backend is unreachable or
  too slow. The gate resolves it through the configured failure policy, so
  it never escapes a request.

Examples:
    Handling a storage error::

        from idempotency_gate.exceptions import StorageError

        try:
            outcome = await store.try_claim(token, ttl_seconds=180)
        except StorageError as e:
            logger.warning("store.claim_failed", error=e.message)
            # Fail open: proceed without deduplication
            outcome = None

    Catching construction problems::

        from idempotency_gate.exceptions import ConfigurationError

        try:
            gate = IdempotencyGate.from_config(IdempotencyConfig.from_env())
        except ConfigurationError as e:
            sys.exit(f"idempotency gate misconfigured: {e.message}")
"""


class IdempotencyError(Exception):
    """Base exception for all idempotency gate errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        """Initialize the exception with a message.

        Args:
            message: Human-readable error description.
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(IdempotencyError):
    """The gate or one of its stores cannot be constructed.

    Raised when required settings are absent, most notably the Redis host and
    port. This is always a construction-time failure.

    Attributes:
        message: Human-readable error description.
        missing: Names of the settings that were missing, if any.

    Examples:
        >>> raise ConfigurationError(
        ...     "Redis address is not configured",
        ...     missing=["IDEMPOTENCE_REDIS_HOST"],
        ... )
    """

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        """Initialize the configuration error.

        Args:
            message: Human-readable error description.
            missing: Names of the missing settings.
        """
        super().__init__(message)
        self.missing = list(missing) if missing else []


class StorageError(IdempotencyError):
    """Key store operation failed.

    Raised when the backend cannot complete a claim or existence check, for
    example because Redis is down or the connection was reset. The error is
    transient; the gate decides whether to fail open or closed.

    Attributes:
        message: Human-readable error description.
        cause: The underlying exception that caused the storage error.

    Examples:
        Wrapping a backend failure::

            try:
                await redis.set(key, "1", nx=True, px=ttl_ms)
            except RedisError as e:
                raise StorageError(f"Failed to claim key in Redis: {e}", cause=e) from e
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        """Initialize the storage error with details.

        Args:
            message: Human-readable error description.
            cause: The underlying exception that caused the storage error.
        """
        super().__init__(message)
        self.cause = cause


class StoreTimeoutError(StorageError):
    """Key store operation did not finish within the configured timeout.

    Attributes:
        message: Human-readable error description.
        timeout_seconds: The bound that was exceeded, or None if the
            store was not told its client's timeout.
        cause: The underlying timeout exception, if any.
    """

    def __init__(
        self,
        message: str,
        timeout_seconds: float | None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize the timeout error.

        Args:
            message: Human-readable error description.
            timeout_seconds: The bound that was exceeded, if known.
            cause: The underlying timeout exception.
        """
        super().__init__(message, cause=cause)
        self.timeout_seconds = timeout_seconds
