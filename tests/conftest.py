"""
Pytest configuration and shared fixtures for idempotency_gate tests.
"""

import os
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from idempotency_gate.storage.memory import MemoryKeyStore


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordedSpan:
    """Span that remembers what was recorded on it."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.attributes: dict[str, Any] = {}
        self.errors: list[BaseException] = []
        self.ended = False

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def record_error(self, error: BaseException) -> None:
        self.errors.append(error)


class RecordingTracer:
    """Tracer that keeps every span it opened, in order."""

    def __init__(self) -> None:
        self.spans: list[RecordedSpan] = []

    @contextmanager
    def start_span(self, name: str):
        span = RecordedSpan(name)
        self.spans.append(span)
        try:
            yield span
        finally:
            span.ended = True

    def names(self) -> list[str]:
        return [span.name for span in self.spans]

    def named(self, name: str) -> list[RecordedSpan]:
        return [span for span in self.spans if span.name == name]


@pytest.fixture
def clock() -> FakeClock:
    """Provide a controllable clock."""
    return FakeClock()


@pytest.fixture
def tracer() -> RecordingTracer:
    """Provide a tracer that records spans."""
    return RecordingTracer()


@pytest.fixture
def memory_store(clock: FakeClock) -> MemoryKeyStore:
    """Create a fresh MemoryKeyStore driven by the fake clock."""
    return MemoryKeyStore(clock=clock)


@pytest.fixture
def sample_token() -> str:
    """Provide a sample idempotency token for tests."""
    return "test-key-12345"


@pytest.fixture(autouse=True)
def _clear_idempotence_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep IDEMPOTENCE_* variables from the host out of tests."""
    for name in list(os.environ):
        if name.startswith("IDEMPOTENCE_"):
            monkeypatch.delenv(name, raising=False)
