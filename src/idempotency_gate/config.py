"""Configuration module for the idempotency gate.

This module provides the IdempotencyConfig class: which HTTP methods are
protected, which header carries the token, how long claims live, how long a
store call may take, what happens when the store fails, and where Redis lives.

Example:
    Basic usage with defaults:

        >>> config = IdempotencyConfig()
        >>> config.enabled_methods
        ['POST', 'PUT', 'PATCH', 'DELETE']
        >>> config.ttl_seconds
        180

    Custom configuration:

        >>> config = IdempotencyConfig(
        ...     ttl_seconds=600,
        ...     failure_policy="fail-closed",
        ...     redis_host="cache.internal",
        ...     redis_port=6379,
        ... )

    Loading from environment:

        >>> import os
        >>> os.environ['IDEMPOTENCE_REDIS_HOST'] = 'localhost'
        >>> os.environ['IDEMPOTENCE_REDIS_PORT'] = '6379'
        >>> config = IdempotencyConfig.from_env()
        >>> config.redis_address()
        ('localhost', 6379)
"""

import os
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from idempotency_gate.exceptions import ConfigurationError

# Valid HTTP methods
VALID_HTTP_METHODS = {
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "DELETE",
    "CONNECT",
    "OPTIONS",
    "TRACE",
    "PATCH",
}

IDEMPOTENCY_HEADER = "Idempotency-Key"

# Redis key for a claimed token is KEY_PREFIX + token, e.g. "req:abc"
KEY_PREFIX = "req:"

DEFAULT_TTL_SECONDS = 180

ENV_PREFIX = "IDEMPOTENCE_"

FailurePolicy = Literal["fail-open", "fail-closed"]


class IdempotencyConfig(BaseModel):
    """Configuration for the idempotency gate.

    Attributes:
        enabled_methods: HTTP methods that are idempotency-sensitive. Requests
            with any other method bypass the gate. Default is the mutating
            verbs POST, PUT, PATCH, DELETE.
        header_name: Request header carrying the idempotency token. Matched
            case-insensitively. Default is "Idempotency-Key".
        key_prefix: Prefix prepended to the token to form the backend key.
            Default is "req:".
        ttl_seconds: Lifetime of a claim. Must be between 1 and 604800
            (7 days). Default is 180 (3 minutes).
        store_timeout_seconds: Upper bound for a single store call. A call
            that takes longer is treated as a store failure. Must be in
            (0, 30]. Default is 1.0.
        failure_policy: What the gate does when the store fails.
            "fail-open" forwards the request unprotected, "fail-closed"
            rejects it. Default is "fail-open".
        rejection_status_code: Status returned under "fail-closed".
            Must be a 4xx or 5xx code. Default is 503.
        redis_host: Redis host name. Required for the Redis key store.
        redis_port: Redis port. Required for the Redis key store.
        redis_db: Redis logical database. Default is 0.
        redis_password: Redis password, if the server requires one.

    Note:
        This class is immutable (frozen=True). Create a new instance if you
        need different settings.
    """

    enabled_methods: list[str] | str = Field(
        default=["POST", "PUT", "PATCH", "DELETE"],
        description="HTTP methods that require idempotency checks",
    )
    header_name: str = Field(
        default=IDEMPOTENCY_HEADER,
        min_length=1,
        description="Request header carrying the idempotency token",
    )
    key_prefix: str = Field(
        default=KEY_PREFIX,
        description="Prefix for backend keys",
    )
    ttl_seconds: int = Field(
        default=DEFAULT_TTL_SECONDS,
        description="Time-to-live in seconds for claims (1-604800)",
    )
    store_timeout_seconds: float = Field(
        default=1.0,
        description="Maximum time in seconds for one store call (0-30]",
    )
    failure_policy: FailurePolicy = Field(
        default="fail-open",
        description="Behavior when the key store fails: 'fail-open' or 'fail-closed'",
    )
    rejection_status_code: int = Field(
        default=503,
        description="HTTP status used when rejecting under fail-closed",
    )
    redis_host: str | None = Field(default=None, description="Redis host")
    redis_port: int | None = Field(default=None, description="Redis port")
    redis_db: int = Field(default=0, ge=0, description="Redis logical database")
    redis_password: str | None = Field(default=None, description="Redis password")

    model_config = {"frozen": True}

    @field_validator("enabled_methods", mode="before")
    @classmethod
    def validate_enabled_methods(cls, v: Any) -> list[str]:
        """Validate and normalize enabled HTTP methods.

        Args:
            v: List of HTTP method strings or comma-separated string.

        Returns:
            List of uppercase, validated HTTP methods.

        Raises:
            ValueError: If any method is not a valid HTTP method.
        """
        if isinstance(v, str):
            # Comma-separated string from environment variables
            v = [method.strip() for method in v.split(",") if method.strip()]

        if not isinstance(v, list):
            raise ValueError("enabled_methods must be a list or comma-separated string")

        methods = [method.upper() for method in v]

        invalid_methods = set(methods) - VALID_HTTP_METHODS
        if invalid_methods:
            raise ValueError(
                f"Invalid HTTP methods: {', '.join(sorted(invalid_methods))}. "
                f"Valid methods are: {', '.join(sorted(VALID_HTTP_METHODS))}"
            )

        return methods

    @field_validator("ttl_seconds")
    @classmethod
    def validate_ttl_seconds(cls, v: int) -> int:
        """Validate TTL is within acceptable range."""
        if not (1 <= v <= 604800):
            raise ValueError(f"ttl_seconds must be between 1 and 604800 (7 days), got {v}")
        return v

    @field_validator("store_timeout_seconds")
    @classmethod
    def validate_store_timeout_seconds(cls, v: float) -> float:
        """Validate the store timeout is positive and at most 30 seconds."""
        if not (0 < v <= 30):
            raise ValueError(f"store_timeout_seconds must be in (0, 30], got {v}")
        return v

    @field_validator("rejection_status_code")
    @classmethod
    def validate_rejection_status_code(cls, v: int) -> int:
        """Validate the rejection status is a client or server error code."""
        if not (400 <= v <= 599):
            raise ValueError(f"rejection_status_code must be a 4xx or 5xx code, got {v}")
        return v

    @field_validator("redis_port")
    @classmethod
    def validate_redis_port(cls, v: int | None) -> int | None:
        if v is not None and not (1 <= v <= 65535):
            raise ValueError(f"redis_port must be between 1 and 65535, got {v}")
        return v

    @property
    def methods(self) -> frozenset[str]:
        """Enabled methods as a set for membership checks."""
        return frozenset(self.enabled_methods)

    def redis_address(self) -> tuple[str, int]:
        """Return the configured Redis (host, port).

        Returns:
            Tuple of host and port.

        Raises:
            ConfigurationError: If host or port is missing.

        Example:
            >>> IdempotencyConfig(redis_host="localhost", redis_port=6379).redis_address()
            ('localhost', 6379)
        """
        if self.redis_host and self.redis_port is not None:
            return self.redis_host, self.redis_port

        missing = []
        if not self.redis_host:
            missing.append(f"{ENV_PREFIX}REDIS_HOST")
        if self.redis_port is None:
            missing.append(f"{ENV_PREFIX}REDIS_PORT")

        raise ConfigurationError(
            f"Redis address is not configured; set {', '.join(missing)}",
            missing=missing,
        )

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "IdempotencyConfig":
        """Create configuration from environment variables.

        Variable names are the uppercase field names with the prefix, e.g.
        IDEMPOTENCE_REDIS_HOST, IDEMPOTENCE_REDIS_PORT, IDEMPOTENCE_TTL_SECONDS.
        Empty variables are ignored.

        Args:
            prefix: Prefix for environment variable names. Default is "IDEMPOTENCE_".

        Returns:
            IdempotencyConfig instance populated from environment variables.

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed.
        """
        config_dict: dict[str, Any] = {}

        field_types = {
            "enabled_methods": list,
            "header_name": str,
            "key_prefix": str,
            "ttl_seconds": int,
            "store_timeout_seconds": float,
            "failure_policy": str,
            "rejection_status_code": int,
            "redis_host": str,
            "redis_port": int,
            "redis_db": int,
            "redis_password": str,
        }

        for field_name, field_type in field_types.items():
            env_var = f"{prefix}{field_name.upper()}"
            env_value = os.environ.get(env_var)

            if env_value is None or env_value == "":
                continue

            if field_type in (int, float):
                try:
                    config_dict[field_name] = field_type(env_value)
                except ValueError as e:
                    raise ConfigurationError(
                        f"{env_var} must be a number, got {env_value!r}"
                    ) from e
            else:
                # Lists stay comma-separated strings; the validator splits them
                config_dict[field_name] = env_value

        return cls(**config_dict)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "IdempotencyConfig":
        """Create configuration from a dictionary.

        Raises:
            ValidationError: If the dictionary contains invalid values.
        """
        return cls(**config_dict)
