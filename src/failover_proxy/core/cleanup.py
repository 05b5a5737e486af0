"""Periodic sweep of expired idempotency records.

The in-memory store treats expired records as absent on read but only frees
them when swept. This task calls storage.cleanup_expired() on an interval so
memory use stays proportional to the delivery rate within one TTL window.

Stores that expire keys on their own (Redis) do not need it; the ASGI app
only starts it for the in-memory adapter.

Examples:
    Start and stop the task::

        from failover_proxy.core.cleanup import start_cleanup_task, stop_cleanup_task
        from failover_proxy.storage.memory import MemoryStorageAdapter

        storage = MemoryStorageAdapter()
        task = await start_cleanup_task(storage, interval_seconds=60)
        ...
        await stop_cleanup_task(task)
"""

import asyncio

from failover_proxy.observability.logging import get_logger
from failover_proxy.observability.metrics import record_cleanup
from failover_proxy.storage.base import StorageAdapter


logger = get_logger(__name__)


class CleanupTask:
    """Handle on a running sweep loop.

    Attributes:
        task: The asyncio task running cleanup_loop()
        stop_event: Set to ask the loop to exit after its current sweep
    """

    def __init__(self, task: "asyncio.Task[None]", stop_event: asyncio.Event) -> None:
        self.task = task
        self.stop_event = stop_event


async def sweep_once(storage: StorageAdapter) -> int:
    """Run one sweep and report it. Returns the number of records removed."""
    count = await storage.cleanup_expired()
    record_cleanup(count)
    if count > 0:
        logger.info("cleanup.completed", records_removed=count)
    else:
        logger.debug("cleanup.completed", records_removed=0)
    return count


async def cleanup_loop(
    storage: StorageAdapter,
    interval_seconds: int = 60,
    stop_event: asyncio.Event | None = None,
) -> None:
    """Sweep expired records every ``interval_seconds`` until stopped.

    A failed sweep is logged and the loop carries on; a broken sweep must
    not take the proxy down with it.

    Args:
        storage: Storage adapter to sweep
        interval_seconds: Time between sweeps
        stop_event: Event that ends the loop when set
    """
    if stop_event is None:
        stop_event = asyncio.Event()

    logger.info("cleanup.started", interval_seconds=interval_seconds)

    while not stop_event.is_set():
        try:
            await sweep_once(storage)
        except Exception as e:
            logger.error(
                "cleanup.failed",
                error=str(e),
                error_type=type(e).__name__,
            )

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            continue

    logger.info("cleanup.stopped")


async def start_cleanup_task(
    storage: StorageAdapter,
    interval_seconds: int = 60,
) -> CleanupTask:
    """Start cleanup_loop() as a background task."""
    stop_event = asyncio.Event()
    task = asyncio.create_task(
        cleanup_loop(
            storage=storage,
            interval_seconds=interval_seconds,
            stop_event=stop_event,
        )
    )
    return CleanupTask(task, stop_event)


async def stop_cleanup_task(handle: CleanupTask, timeout: float = 5.0) -> None:
    """Stop a running cleanup task, cancelling it if it does not exit in time."""
    handle.stop_event.set()

    try:
        await asyncio.wait_for(handle.task, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("cleanup.stop_timeout", timeout_seconds=timeout)
        handle.task.cancel()
        try:
            await handle.task
        except asyncio.CancelledError:
            logger.debug("cleanup.cancelled")
