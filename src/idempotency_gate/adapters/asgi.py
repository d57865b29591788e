"""ASGI middleware adapter for FastAPI and Starlette applications.

The middleware:
1. Converts the Starlette request to the gate's internal Request
2. Asks the gate for a decision (this claims the token when applicable)
3. Forwards to the application, or answers without calling it

Forwarded responses are passed through untouched, streaming included.

Examples:
    FastAPI with Redis configured from the environment::

        from fastapi import FastAPI
        from idempotency_gate.adapters.asgi import ASGIIdempotencyMiddleware
        from idempotency_gate.core.gate import IdempotencyGate

        # Reads IDEMPOTENCE_REDIS_HOST / IDEMPOTENCE_REDIS_PORT and raises
        # ConfigurationError here, at startup, when they are missing
        gate = IdempotencyGate.from_config()

        app = FastAPI()
        app.add_middleware(ASGIIdempotencyMiddleware, gate=gate)

        @app.post("/api/orders")
        async def create_order(order: Order):
            # Retries carrying the same Idempotency-Key are answered with 200
            return {"status": "created"}

    Starlette with an explicit store and tracer::

        from starlette.applications import Starlette
        from starlette.middleware import Middleware

        middleware = [
            Middleware(
                ASGIIdempotencyMiddleware,
                store=RedisKeyStore.from_config(config),
                config=config,
                tracer=my_tracer,
            )
        ]

        app = Starlette(middleware=middleware)

Starlette instantiates middleware on the first request. Passing store= or
nothing at all defers store construction, and any ConfigurationError, to that
moment; pass a prebuilt gate= to resolve configuration at startup.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest
from starlette.responses import Response

from idempotency_gate.config import IdempotencyConfig
from idempotency_gate.core.gate import GateResponse, IdempotencyGate, Request
from idempotency_gate.observability.tracing import Tracer
from idempotency_gate.storage.base import KeyStore


class ASGIIdempotencyMiddleware(BaseHTTPMiddleware):
    """ASGI middleware for idempotency handling.

    Attributes:
        gate: Core gate instance
    """

    def __init__(
        self,
        app: Any,
        gate: IdempotencyGate | None = None,
        store: KeyStore | None = None,
        config: IdempotencyConfig | None = None,
        tracer: Tracer | None = None,
    ) -> None:
        """Initialize the ASGI middleware.

        Args:
            app: The ASGI application
            gate: Prebuilt gate; store, config and tracer must then be omitted
            store: Key store; a Redis store is built from config when omitted
            config: Configuration object (read from the environment when
                omitted and no store is given, defaults otherwise)
            tracer: Optional tracer

        Raises:
            ConfigurationError: If no gate or store is given and Redis is not
                configured.
            ValueError: If gate is combined with store, config or tracer.
        """
        super().__init__(app)
        if gate is not None:
            if store is not None or config is not None or tracer is not None:
                raise ValueError("Pass either gate or store/config/tracer, not both")
            self.gate = gate
        elif store is None:
            self.gate = IdempotencyGate.from_config(config, tracer=tracer)
        else:
            self.gate = IdempotencyGate(store, config, tracer=tracer)

    async def dispatch(
        self,
        request: StarletteRequest,
        call_next: Callable[[StarletteRequest], Awaitable[Response]],
    ) -> Response:
        """Process an ASGI request through the gate.

        Args:
            request: The Starlette request object
            call_next: Function to call the next middleware/handler

        Returns:
            Starlette Response object
        """
        internal_request = self._convert_request(request)

        decision = await self.gate.admit(internal_request)
        if decision.forwards:
            return await call_next(request)

        return self._convert_response(self.gate.short_circuit_response(decision, internal_request))

    def _convert_request(self, request: StarletteRequest) -> Request:
        """Convert Starlette request to internal Request format.

        The body is not read; the gate only needs the method and headers.
        """
        headers: dict[str, str] = {}
        for key, value in request.headers.items():
            headers[key] = value

        return Request(
            method=request.method,
            path=request.url.path,
            headers=headers,
        )

    def _convert_response(self, response: GateResponse) -> Response:
        """Convert a GateResponse to a Starlette Response."""
        return Response(
            content=response.body,
            status_code=response.status,
            headers=response.headers,
        )
