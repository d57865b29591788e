"""End-to-end scenario tests for the idempotency gate.

Each scenario mounts the gate on a small FastAPI app and checks one aspect
of its behavior through real HTTP requests.
"""
