"""Background sweeper for expired claim records.

Redis drops expired keys by itself. MemoryKeyStore only treats expired
records as absent, so without a sweep its dictionary grows with every token
ever seen. The sweeper periodically calls purge_expired() on such a store.

The sweeper:
1. Runs at configurable intervals (default 60 seconds)
2. Calls store.purge_expired()
3. Reports metrics and logs
4. Keeps running if a sweep fails

Examples:
    Integrate with FastAPI lifespan::

        from contextlib import asynccontextmanager

        store = MemoryKeyStore()

        @asynccontextmanager
        async def lifespan(app):
            task = await start_sweeper(store, interval_seconds=60)
            yield
            await stop_sweeper(task)

        app = FastAPI(lifespan=lifespan)
"""

import asyncio
from typing import Protocol

from idempotency_gate.observability.logging import get_logger
from idempotency_gate.observability.metrics import record_sweep

logger = get_logger(__name__)


class PurgeableStore(Protocol):
    """A key store that needs explicit removal of expired records."""

    async def purge_expired(self) -> int: ...


async def sweep_loop(
    store: PurgeableStore,
    interval_seconds: float = 60,
    stop_event: asyncio.Event | None = None,
) -> None:
    """Periodically remove expired records until stop_event is set.

    Args:
        store: Store to sweep
        interval_seconds: Time between sweeps
        stop_event: Event that stops the loop (optional)
    """
    if stop_event is None:
        stop_event = asyncio.Event()

    logger.info("sweeper.started", interval_seconds=interval_seconds)

    while not stop_event.is_set():
        try:
            count = await store.purge_expired()
            record_sweep(count)

            if count > 0:
                logger.info("sweeper.completed", records_removed=count)
            else:
                logger.debug("sweeper.completed", records_removed=0)

        except Exception as e:
            # A failed sweep must not kill the loop
            logger.error(
                "sweeper.failed",
                error=str(e),
                error_type=type(e).__name__,
            )

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            continue

    logger.info("sweeper.stopped")


async def start_sweeper(
    store: PurgeableStore,
    interval_seconds: float = 60,
) -> asyncio.Task[None]:
    """Start the sweeper as a background task.

    Returns:
        The asyncio Task running the sweep loop
    """
    stop_event = asyncio.Event()

    task = asyncio.create_task(
        sweep_loop(
            store=store,
            interval_seconds=interval_seconds,
            stop_event=stop_event,
        )
    )

    task._stop_event = stop_event  # type: ignore[attr-defined]

    return task


async def stop_sweeper(task: asyncio.Task[None], timeout_seconds: float = 5.0) -> None:
    """Stop a sweeper started with start_sweeper() and wait for it.

    Cancels the task if it does not stop within timeout_seconds.
    """
    stop_event: asyncio.Event | None = getattr(task, "_stop_event", None)

    if stop_event:
        stop_event.set()

    try:
        await asyncio.wait_for(task, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning("sweeper.stop_timeout")
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            logger.debug("sweeper.cancelled")
