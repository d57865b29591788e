"""Utility modules for the idempotency gate."""

from .headers import (
    REPLAY_HEADER,
    extract_token,
    get_header_value,
    rejection_headers,
    replay_headers,
)

__all__ = [
    "REPLAY_HEADER",
    "extract_token",
    "get_header_value",
    "rejection_headers",
    "replay_headers",
]
