"""Unit tests for IdempotencyConfig.

This test suite covers:
    - Defaults
    - Field validation and normalization
    - Immutability
    - Loading from environment and dictionaries
    - Redis address resolution
"""

import pytest
from pydantic import ValidationError

from idempotency_gate.config import (
    DEFAULT_TTL_SECONDS,
    IDEMPOTENCY_HEADER,
    KEY_PREFIX,
    VALID_HTTP_METHODS,
    IdempotencyConfig,
)
from idempotency_gate.exceptions import ConfigurationError

# ============================================================================
# Defaults
# ============================================================================


def test_defaults():
    """Test that defaults match the documented behavior."""
    config = IdempotencyConfig()

    assert config.enabled_methods == ["POST", "PUT", "PATCH", "DELETE"]
    assert config.header_name == "Idempotency-Key"
    assert config.key_prefix == "req:"
    assert config.ttl_seconds == 180
    assert config.store_timeout_seconds == 1.0
    assert config.failure_policy == "fail-open"
    assert config.rejection_status_code == 503
    assert config.redis_host is None
    assert config.redis_port is None
    assert config.redis_db == 0
    assert config.redis_password is None


def test_named_constants():
    """Test module-level constants used by the defaults."""
    assert IDEMPOTENCY_HEADER == "Idempotency-Key"
    assert KEY_PREFIX == "req:"
    assert DEFAULT_TTL_SECONDS == 3 * 60
    assert {"POST", "PUT", "PATCH", "DELETE", "GET"} <= VALID_HTTP_METHODS


def test_methods_property_is_frozenset():
    """Test that methods exposes the enabled methods as a frozenset."""
    config = IdempotencyConfig(enabled_methods=["POST", "DELETE"])
    assert config.methods == frozenset({"POST", "DELETE"})


# ============================================================================
# Validation
# ============================================================================


def test_enabled_methods_are_uppercased():
    """Test that methods are normalized to uppercase."""
    config = IdempotencyConfig(enabled_methods=["post", "Put"])
    assert config.enabled_methods == ["POST", "PUT"]


def test_enabled_methods_from_comma_separated_string():
    """Test that a comma-separated string is split and normalized."""
    config = IdempotencyConfig(enabled_methods="post, patch ,")
    assert config.enabled_methods == ["POST", "PATCH"]


def test_invalid_method_rejected():
    """Test that unknown HTTP methods are rejected."""
    with pytest.raises(ValidationError, match="Invalid HTTP methods: FETCH"):
        IdempotencyConfig(enabled_methods=["POST", "FETCH"])


def test_enabled_methods_wrong_type_rejected():
    """Test that non-list, non-string methods are rejected."""
    with pytest.raises(ValidationError):
        IdempotencyConfig(enabled_methods=42)


@pytest.mark.parametrize("ttl", [1, 180, 604800])
def test_ttl_within_range(ttl):
    """Test TTL boundaries are accepted."""
    assert IdempotencyConfig(ttl_seconds=ttl).ttl_seconds == ttl


@pytest.mark.parametrize("ttl", [0, -1, 604801])
def test_ttl_out_of_range(ttl):
    """Test TTL outside 1..604800 is rejected."""
    with pytest.raises(ValidationError, match="ttl_seconds"):
        IdempotencyConfig(ttl_seconds=ttl)


@pytest.mark.parametrize("timeout", [0, -0.5, 30.5])
def test_store_timeout_out_of_range(timeout):
    """Test store timeout must be in (0, 30]."""
    with pytest.raises(ValidationError, match="store_timeout_seconds"):
        IdempotencyConfig(store_timeout_seconds=timeout)


def test_store_timeout_upper_bound_accepted():
    """Test that 30 seconds is accepted."""
    assert IdempotencyConfig(store_timeout_seconds=30).store_timeout_seconds == 30


def test_failure_policy_must_be_known():
    """Test that only fail-open and fail-closed are accepted."""
    assert IdempotencyConfig(failure_policy="fail-closed").failure_policy == "fail-closed"
    with pytest.raises(ValidationError):
        IdempotencyConfig(failure_policy="fail-sometimes")


@pytest.mark.parametrize("status", [200, 302, 600])
def test_rejection_status_must_be_error_code(status):
    """Test that the rejection status must be 4xx or 5xx."""
    with pytest.raises(ValidationError, match="rejection_status_code"):
        IdempotencyConfig(rejection_status_code=status)


def test_redis_port_range():
    """Test that out-of-range ports are rejected."""
    with pytest.raises(ValidationError, match="redis_port"):
        IdempotencyConfig(redis_port=70000)


def test_empty_header_name_rejected():
    """Test that the header name cannot be empty."""
    with pytest.raises(ValidationError):
        IdempotencyConfig(header_name="")


def test_config_is_frozen():
    """Test that configuration cannot be modified after creation."""
    config = IdempotencyConfig()
    with pytest.raises(ValidationError):
        config.ttl_seconds = 10


# ============================================================================
# Redis address
# ============================================================================


def test_redis_address_complete():
    """Test that a configured address is returned as (host, port)."""
    config = IdempotencyConfig(redis_host="cache", redis_port=6380)
    assert config.redis_address() == ("cache", 6380)


def test_redis_address_missing_everything():
    """Test that a missing address names both variables."""
    with pytest.raises(ConfigurationError) as exc_info:
        IdempotencyConfig().redis_address()

    assert exc_info.value.missing == ["IDEMPOTENCE_REDIS_HOST", "IDEMPOTENCE_REDIS_PORT"]


def test_redis_address_missing_port():
    """Test that a missing port is reported on its own."""
    with pytest.raises(ConfigurationError) as exc_info:
        IdempotencyConfig(redis_host="cache").redis_address()

    assert exc_info.value.missing == ["IDEMPOTENCE_REDIS_PORT"]


def test_redis_address_empty_host():
    """Test that an empty host counts as missing even with a port."""
    with pytest.raises(ConfigurationError) as exc_info:
        IdempotencyConfig(redis_host="", redis_port=6379).redis_address()

    assert exc_info.value.missing == ["IDEMPOTENCE_REDIS_HOST"]


# ============================================================================
# Loading
# ============================================================================


def test_from_env_reads_redis_address(monkeypatch):
    """Test that the original environment variable names are honored."""
    monkeypatch.setenv("IDEMPOTENCE_REDIS_HOST", "redis.internal")
    monkeypatch.setenv("IDEMPOTENCE_REDIS_PORT", "6379")

    config = IdempotencyConfig.from_env()

    assert config.redis_address() == ("redis.internal", 6379)


def test_from_env_reads_all_fields(monkeypatch):
    """Test that every supported field is read and converted."""
    monkeypatch.setenv("IDEMPOTENCE_ENABLED_METHODS", "POST,PUT")
    monkeypatch.setenv("IDEMPOTENCE_HEADER_NAME", "X-Idempotency-Key")
    monkeypatch.setenv("IDEMPOTENCE_KEY_PREFIX", "orders:")
    monkeypatch.setenv("IDEMPOTENCE_TTL_SECONDS", "600")
    monkeypatch.setenv("IDEMPOTENCE_STORE_TIMEOUT_SECONDS", "0.25")
    monkeypatch.setenv("IDEMPOTENCE_FAILURE_POLICY", "fail-closed")
    monkeypatch.setenv("IDEMPOTENCE_REJECTION_STATUS_CODE", "429")
    monkeypatch.setenv("IDEMPOTENCE_REDIS_DB", "2")
    monkeypatch.setenv("IDEMPOTENCE_REDIS_PASSWORD", "s3cret")

    config = IdempotencyConfig.from_env()

    assert config.enabled_methods == ["POST", "PUT"]
    assert config.header_name == "X-Idempotency-Key"
    assert config.key_prefix == "orders:"
    assert config.ttl_seconds == 600
    assert config.store_timeout_seconds == 0.25
    assert config.failure_policy == "fail-closed"
    assert config.rejection_status_code == 429
    assert config.redis_db == 2
    assert config.redis_password == "s3cret"


def test_from_env_ignores_empty_values(monkeypatch):
    """Test that empty variables fall back to defaults."""
    monkeypatch.setenv("IDEMPOTENCE_REDIS_HOST", "")
    monkeypatch.setenv("IDEMPOTENCE_TTL_SECONDS", "")

    config = IdempotencyConfig.from_env()

    assert config.redis_host is None
    assert config.ttl_seconds == 180


def test_from_env_non_numeric_value(monkeypatch):
    """Test that unparsable numbers are configuration errors."""
    monkeypatch.setenv("IDEMPOTENCE_REDIS_PORT", "sixtythree")

    with pytest.raises(ConfigurationError, match="IDEMPOTENCE_REDIS_PORT"):
        IdempotencyConfig.from_env()


def test_from_env_custom_prefix(monkeypatch):
    """Test loading with a different prefix."""
    monkeypatch.setenv("MYAPP_TTL_SECONDS", "60")

    config = IdempotencyConfig.from_env(prefix="MYAPP_")

    assert config.ttl_seconds == 60


def test_from_dict():
    """Test loading from a dictionary."""
    config = IdempotencyConfig.from_dict(
        {"ttl_seconds": 30, "redis_host": "localhost", "redis_port": 6379}
    )

    assert config.ttl_seconds == 30
    assert config.redis_address() == ("localhost", 6379)


def test_from_dict_invalid_value():
    """Test that invalid dictionary values raise ValidationError."""
    with pytest.raises(ValidationError):
        IdempotencyConfig.from_dict({"ttl_seconds": 0})
