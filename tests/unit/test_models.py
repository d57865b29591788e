"""Unit tests for core models.

This test suite covers:
    - ClaimOutcome values
    - GateDecision forwarding and claim semantics
    - ClaimRecord validation and expiry
"""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from idempotency_gate.models import ClaimOutcome, ClaimRecord, GateDecision

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


# ============================================================================
# ClaimOutcome
# ============================================================================


def test_claim_outcome_values():
    assert ClaimOutcome.CLAIMED.value == "CLAIMED"
    assert ClaimOutcome.ALREADY_CLAIMED.value == "ALREADY_CLAIMED"
    assert ClaimOutcome("CLAIMED") is ClaimOutcome.CLAIMED


# ============================================================================
# GateDecision
# ============================================================================


@pytest.mark.parametrize(
    "decision",
    [
        GateDecision.BYPASSED,
        GateDecision.UNPROTECTED,
        GateDecision.CLAIMED,
        GateDecision.FAILED_OPEN,
    ],
)
def test_forwarding_decisions(decision):
    """Test decisions that let the handler run."""
    assert decision.forwards is True


@pytest.mark.parametrize("decision", [GateDecision.ALREADY_CLAIMED, GateDecision.FAILED_CLOSED])
def test_short_circuit_decisions(decision):
    """Test decisions that answer without the handler."""
    assert decision.forwards is False


def test_decision_is_string_enum():
    assert GateDecision.ALREADY_CLAIMED == "ALREADY_CLAIMED"


# ============================================================================
# ClaimRecord
# ============================================================================


def test_for_ttl_sets_expiry():
    """Test that for_ttl computes expires_at from the TTL."""
    record = ClaimRecord.for_ttl("abc", ttl_seconds=180, now=NOW)

    assert record.token == "abc"
    assert record.created_at == NOW
    assert record.expires_at == NOW + timedelta(minutes=3)


def test_is_expired_boundaries():
    """Test that a record expires exactly at expires_at."""
    record = ClaimRecord.for_ttl("abc", ttl_seconds=180, now=NOW)

    assert record.is_expired(NOW) is False
    assert record.is_expired(NOW + timedelta(seconds=179)) is False
    assert record.is_expired(NOW + timedelta(seconds=180)) is True
    assert record.is_expired(NOW + timedelta(seconds=181)) is True


def test_naive_timestamps_are_utc():
    """Test that naive timestamps are interpreted as UTC."""
    record = ClaimRecord(
        token="abc",
        created_at=datetime(2024, 1, 1, 12, 0, 0),
        expires_at=datetime(2024, 1, 1, 12, 3, 0),
    )

    assert record.created_at.tzinfo is UTC
    assert record.is_expired(NOW + timedelta(minutes=4)) is True


def test_empty_token_rejected():
    with pytest.raises(ValidationError):
        ClaimRecord.for_ttl("", ttl_seconds=180, now=NOW)


def test_expiry_must_follow_creation():
    with pytest.raises(ValidationError, match="must be after created_at"):
        ClaimRecord(token="abc", created_at=NOW, expires_at=NOW)


def test_record_is_frozen():
    """Test that records are never mutated after creation."""
    record = ClaimRecord.for_ttl("abc", ttl_seconds=180, now=NOW)
    with pytest.raises(ValidationError):
        record.expires_at = NOW + timedelta(hours=1)
