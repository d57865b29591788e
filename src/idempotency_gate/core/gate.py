"""Framework-agnostic idempotency gate.

The gate decides, per request, whether idempotency protection applies and
enforces the outcome:

1. Requests whose method is not idempotency-sensitive pass through.
2. Requests without an idempotency token pass through unprotected.
3. Otherwise the token is claimed in the key store, once, with a bounded
   timeout:
   - claimed now: the request is forwarded
   - already claimed: the request is answered with 200 and an empty body
   - store failure: forwarded (fail-open) or rejected (fail-closed)

The gate keeps no per-request state. All coordination between requests and
processes happens in the key store.

Examples:
    Using the gate directly::

        from idempotency_gate.core.gate import GateResponse, IdempotencyGate, Request
        from idempotency_gate.storage.memory import MemoryKeyStore

        gate = IdempotencyGate(MemoryKeyStore())

        async def handler(request):
            return GateResponse(status=201, body=b"created")

        request = Request("POST", "/orders", {"Idempotency-Key": "abc"})
        first = await gate.process(request, handler)   # handler runs
        second = await gate.process(request, handler)  # 200, handler skipped

    Building a Redis-backed gate from the environment::

        gate = IdempotencyGate.from_config()
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from idempotency_gate.config import IdempotencyConfig
from idempotency_gate.exceptions import StorageError, StoreTimeoutError
from idempotency_gate.models import ClaimOutcome, GateDecision
from idempotency_gate.observability.logging import get_logger, scrub_token
from idempotency_gate.observability.metrics import record_decision, record_store_operation
from idempotency_gate.observability.tracing import Span, Tracer, resolve_tracer
from idempotency_gate.storage.base import KeyStore
from idempotency_gate.storage.redis import RedisKeyStore
from idempotency_gate.utils.headers import extract_token, rejection_headers, replay_headers

logger = get_logger(__name__)

ResponseT = TypeVar("ResponseT")


class Request:
    """Abstract request representation.

    Framework adapters convert their request objects into this format.

    Attributes:
        method: HTTP method (GET, POST, etc.)
        path: URL path, used for logging only
        headers: Request headers as dict
    """

    def __init__(self, method: str, path: str, headers: dict[str, str]) -> None:
        self.method = method
        self.path = path
        self.headers = headers


class GateResponse:
    """Response produced by the gate itself, without calling the handler.

    Attributes:
        status: HTTP status code
        headers: Response headers
        body: Response body
    """

    def __init__(
        self,
        status: int,
        headers: dict[str, str] | None = None,
        body: bytes = b"",
    ) -> None:
        self.status = status
        self.headers = headers or {}
        self.body = body

    def __repr__(self) -> str:
        return f"GateResponse(status={self.status}, headers={self.headers!r}, body={self.body!r})"


class IdempotencyGate:
    """Request-facing idempotency policy.

    Attributes:
        store: Key store providing the atomic claim
        config: Configuration object
    """

    def __init__(
        self,
        store: KeyStore,
        config: IdempotencyConfig | None = None,
        tracer: Tracer | None = None,
    ) -> None:
        """Initialize the gate.

        Args:
            store: Key store providing the atomic claim
            config: Configuration object (uses defaults if not provided)
            tracer: Optional tracer; omitted means tracing is disabled
        """
        self.store = store
        self.config = config or IdempotencyConfig()
        self._tracer = resolve_tracer(tracer)
        self._methods = self.config.methods

    @classmethod
    def from_config(
        cls,
        config: IdempotencyConfig | None = None,
        tracer: Tracer | None = None,
    ) -> "IdempotencyGate":
        """Build a gate backed by Redis.

        Args:
            config: Configuration; read from IDEMPOTENCE_* environment
                variables when omitted.
            tracer: Optional tracer shared by the gate and its store.

        Raises:
            ConfigurationError: If the Redis address is not configured.
        """
        config = config or IdempotencyConfig.from_env()
        store = RedisKeyStore.from_config(config, tracer=tracer)
        return cls(store, config, tracer)

    def is_protected(self, method: str) -> bool:
        """Return True if requests with this method are deduplicated."""
        return method.upper() in self._methods

    def extract_token(self, request: Request) -> str | None:
        """Return the request's idempotency token, or None if absent or blank."""
        return extract_token(request.headers, self.config.header_name)

    async def admit(self, request: Request) -> GateDecision:
        """Decide what to do with a request.

        Claims the token when one applies. This is the only place the gate
        talks to the store, and it does so at most once per call.

        Args:
            request: The incoming request

        Returns:
            The decision; GateDecision.forwards tells whether to run the handler.
        """
        with self._tracer.start_span("IdempotencyGate.admit") as span:
            span.set_attribute("http.method", request.method)
            decision = await self._decide(request, span)
            span.set_attribute("idempotency.decision", decision.value)

        record_decision(decision)
        return decision

    async def process(
        self,
        request: Request,
        handler: Callable[[Request], Awaitable[ResponseT]],
    ) -> ResponseT | GateResponse:
        """Process a request through the gate.

        Args:
            request: The incoming request
            handler: Async function to execute if the request proceeds

        Returns:
            The handler's response, or a GateResponse when short-circuited
            or rejected.
        """
        decision = await self.admit(request)
        if decision.forwards:
            return await handler(request)

        return self.short_circuit_response(decision, request)

    def short_circuit_response(self, decision: GateDecision, request: Request) -> GateResponse:
        """Build the response for a request the gate does not forward.

        A duplicate gets 200 with an empty body and no replay of the original
        payload. A request rejected under fail-closed gets the configured
        rejection status.

        Raises:
            ValueError: If the decision forwards the request.
        """
        if decision is GateDecision.ALREADY_CLAIMED:
            token = self.extract_token(request) or ""
            return GateResponse(status=200, headers=replay_headers(token))

        if decision is GateDecision.FAILED_CLOSED:
            return GateResponse(
                status=self.config.rejection_status_code,
                headers=rejection_headers(),
                body=b"Idempotency store unavailable",
            )

        raise ValueError(f"Decision {decision.value} forwards the request")

    async def close(self) -> None:
        """Close the underlying key store."""
        await self.store.close()

    async def _decide(self, request: Request, span: Span) -> GateDecision:
        if not self.is_protected(request.method):
            return GateDecision.BYPASSED

        token = self.extract_token(request)
        if token is None:
            return GateDecision.UNPROTECTED

        token_digest = scrub_token(token)
        span.set_attribute("idempotency.token", token_digest)

        try:
            outcome = await self._claim(token)
        except StorageError as e:
            span.record_error(e)
            return self._on_store_failure(request, token_digest, e)

        if outcome is ClaimOutcome.ALREADY_CLAIMED:
            logger.info(
                "gate.short_circuited",
                method=request.method,
                path=request.path,
                token=token_digest,
            )
            return GateDecision.ALREADY_CLAIMED

        logger.debug(
            "gate.claimed",
            method=request.method,
            path=request.path,
            token=token_digest,
        )
        return GateDecision.CLAIMED

    async def _claim(self, token: str) -> ClaimOutcome:
        """Claim the token, bounded by store_timeout_seconds.

        Raises:
            StoreTimeoutError: If the store does not answer in time.
            StorageError: If the store fails.
        """
        timeout = self.config.store_timeout_seconds
        try:
            return await asyncio.wait_for(
                self.store.try_claim(token, self.config.ttl_seconds),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            record_store_operation("try_claim", "timeout")
            raise StoreTimeoutError(
                f"Key store did not answer within {timeout}s",
                timeout_seconds=timeout,
                cause=e,
            ) from e

    def _on_store_failure(
        self,
        request: Request,
        token_digest: str,
        error: StorageError,
    ) -> GateDecision:
        policy = self.config.failure_policy
        decision = (
            GateDecision.FAILED_OPEN if policy == "fail-open" else GateDecision.FAILED_CLOSED
        )

        logger.warning(
            "gate.store_failed",
            method=request.method,
            path=request.path,
            token=token_digest,
            policy=policy,
            error=error.message,
            error_type=type(error).__name__,
        )
        return decision
