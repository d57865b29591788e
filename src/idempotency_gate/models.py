"""Core type definitions for the idempotency gate.

This module provides the data structures shared by the gate and its key
stores: the outcome of a claim, the decision the gate takes for a request,
and the record an in-process store keeps for a claimed token.

Examples:
    Interpreting a claim::

        from idempotency_gate.models import ClaimOutcome

        outcome = await store.try_claim("abc", ttl_seconds=180)
        if outcome is ClaimOutcome.CLAIMED:
            ...  # first time we see "abc" in this window

    Inspecting a gate decision::

        from idempotency_gate.models import GateDecision

        decision = await gate.admit(request)
        if not decision.forwards:
            return short_circuit_response(decision)
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator


class ClaimOutcome(str, Enum):
    """Result of an atomic claim attempt.

    Attributes:
        CLAIMED: The token was absent and is now claimed by this caller.
        ALREADY_CLAIMED: The token was already claimed and has not expired.
    """

    CLAIMED = "CLAIMED"
    ALREADY_CLAIMED = "ALREADY_CLAIMED"


class GateDecision(str, Enum):
    """What the gate decided for one request.

    Every request ends in exactly one decision, so telemetry can tell the
    forwarded, short-circuited and store-failure paths apart.

    Attributes:
        BYPASSED: Method is not idempotency-sensitive; forwarded.
        UNPROTECTED: No token supplied; forwarded without a claim.
        CLAIMED: Token claimed now; forwarded.
        ALREADY_CLAIMED: Token seen before; short-circuited with 200.
        FAILED_OPEN: Store failed, policy is fail-open; forwarded.
        FAILED_CLOSED: Store failed, policy is fail-closed; rejected.
    """

    BYPASSED = "BYPASSED"
    UNPROTECTED = "UNPROTECTED"
    CLAIMED = "CLAIMED"
    ALREADY_CLAIMED = "ALREADY_CLAIMED"
    FAILED_OPEN = "FAILED_OPEN"
    FAILED_CLOSED = "FAILED_CLOSED"

    @property
    def forwards(self) -> bool:
        """True if the downstream handler should run."""
        return self not in (GateDecision.ALREADY_CLAIMED, GateDecision.FAILED_CLOSED)


class ClaimRecord(BaseModel):
    """A claimed token held by an in-process key store.

    The record carries no payload; its presence is the marker. It is created
    once and never updated, and it stops counting once expires_at passes.

    Attributes:
        token: The idempotency token that was claimed.
        created_at: When the claim succeeded (UTC).
        expires_at: When the claim lapses (UTC).

    Examples:
        >>> now = datetime.now(UTC)
        >>> record = ClaimRecord.for_ttl("abc", ttl_seconds=180, now=now)
        >>> record.is_expired(now)
        False
        >>> record.is_expired(now + timedelta(seconds=181))
        True
    """

    token: str = Field(..., min_length=1, description="Claimed idempotency token")
    created_at: datetime = Field(..., description="Claim timestamp (UTC)")
    expires_at: datetime = Field(..., description="Expiry timestamp (UTC)")

    model_config = {"frozen": True}

    @field_validator("created_at", "expires_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @model_validator(mode="after")
    def validate_expiry_after_creation(self) -> "ClaimRecord":
        """Ensure expires_at is later than created_at."""
        if self.expires_at <= self.created_at:
            raise ValueError(
                f"expires_at ({self.expires_at}) must be after created_at ({self.created_at})"
            )
        return self

    @classmethod
    def for_ttl(cls, token: str, ttl_seconds: float, now: datetime) -> "ClaimRecord":
        """Build a record that lives ttl_seconds from now."""
        return cls(
            token=token,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )

    def is_expired(self, now: datetime) -> bool:
        """Return True once the record no longer counts as claimed."""
        return now >= self.expires_at
