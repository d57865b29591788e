"""Framework adapters for the idempotency gate.

- asgi.py: Starlette middleware for FastAPI, Starlette, etc.

The adapters convert framework-specific requests into the gate's internal
Request and turn short-circuit decisions into framework responses.
"""

from idempotency_gate.adapters.asgi import ASGIIdempotencyMiddleware

__all__ = ["ASGIIdempotencyMiddleware"]
