"""Header helpers for the idempotency gate.

This module provides functions for:
- Case-insensitive header lookup
- Extracting the idempotency token from request headers
- Building headers for short-circuited and rejected responses
"""

from idempotency_gate.config import IDEMPOTENCY_HEADER

REPLAY_HEADER = "Idempotent-Replay"

# Retry-After sent when the store is down and the gate fails closed
REJECTION_RETRY_AFTER_SECONDS = 5


def get_header_value(
    headers: dict[str, str],
    header_name: str,
    default: str | None = None,
) -> str | None:
    """Get header value with case-insensitive lookup.

    Args:
        headers: Headers dictionary
        header_name: Name of header to find (case-insensitive)
        default: Default value if header not found

    Returns:
        Header value or default

    Example:
        >>> headers = {"Content-Type": "application/json"}
        >>> get_header_value(headers, "content-type")
        'application/json'
        >>> get_header_value(headers, "missing", "default")
        'default'
    """
    header_name_lower = header_name.lower()

    for key, value in headers.items():
        if key.lower() == header_name_lower:
            return value

    return default


def extract_token(
    headers: dict[str, str],
    header_name: str = IDEMPOTENCY_HEADER,
) -> str | None:
    """Return the idempotency token from request headers.

    Surrounding whitespace is stripped. A missing or blank header yields
    None: the caller did not opt in to deduplication.

    Example:
        >>> extract_token({"idempotency-key": "  abc "})
        'abc'
        >>> extract_token({"Idempotency-Key": "   "}) is None
        True
    """
    value = get_header_value(headers, header_name)
    if value is None:
        return None

    token = value.strip()
    return token or None


def replay_headers(token: str) -> dict[str, str]:
    """Headers for a request short-circuited as already handled.

    Example:
        >>> replay_headers("abc-123")
        {'Idempotent-Replay': 'true', 'Idempotency-Key': 'abc-123'}
    """
    return {
        REPLAY_HEADER: "true",
        IDEMPOTENCY_HEADER: token,
    }


def rejection_headers(retry_after_seconds: int = REJECTION_RETRY_AFTER_SECONDS) -> dict[str, str]:
    """Headers for a request rejected because the key store is unavailable."""
    return {
        "content-type": "text/plain",
        "retry-after": str(retry_after_seconds),
    }
