"""In-memory storage adapter with asyncio concurrency control.

This module provides an in-process implementation of the StorageAdapter
interface. Records live in a dictionary keyed by idempotency key, each with
an absolute deadline on a monotonic clock.

The MemoryStorageAdapter is suitable for:
    - Single-process deployments
    - Development and testing

For several proxy processes sharing one dedup window, use
RedisStorageAdapter instead.

Expiry:
    - get() and put_if_absent() treat a record past its deadline as absent
    - cleanup_expired() physically removes such records; the background
      cleanup task calls it periodically to bound memory use

Examples:
    Basic usage::

        from failover_proxy.storage.memory import MemoryStorageAdapter

        adapter = MemoryStorageAdapter()
        await adapter.put("5e88...a1", "1", ttl_seconds=300)
        assert await adapter.get("5e88...a1") == "1"

    Deterministic expiry in tests::

        now = [1000.0]
        adapter = MemoryStorageAdapter(clock=lambda: now[0])
        await adapter.put("k", "1", ttl_seconds=300)
        now[0] += 301
        assert await adapter.get("k") is None
"""

import asyncio
import time
from collections.abc import Callable

from failover_proxy.storage.base import StorageAdapter


class MemoryStorageAdapter(StorageAdapter):
    """In-memory storage adapter.

    Attributes:
        _store: Dictionary mapping keys to (marker, deadline) pairs.
        _lock: Lock serializing conditional writes and cleanup sweeps.
        _clock: Monotonic time source in seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize a new in-memory storage adapter.

        Args:
            clock: Time source returning seconds. Defaults to time.monotonic.
        """
        self._store: dict[str, tuple[str, float]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    def __len__(self) -> int:
        """Number of records held, including expired ones not yet swept."""
        return len(self._store)

    def _live(self, key: str) -> str | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        marker, deadline = entry
        if deadline <= self._clock():
            return None
        return marker

    async def get(self, key: str) -> str | None:
        """Return the marker for ``key`` if a live record exists."""
        return self._live(key)

    async def put(self, key: str, marker: str, ttl_seconds: int) -> None:
        """Store ``marker`` under ``key`` with a fresh deadline."""
        self._store[key] = (marker, self._clock() + ttl_seconds)

    async def put_if_absent(self, key: str, marker: str, ttl_seconds: int) -> bool:
        """Store ``marker`` only if no live record exists for ``key``.

        The check and the write happen under one lock, so exactly one of
        several concurrent callers with the same key gets True.
        """
        async with self._lock:
            if self._live(key) is not None:
                return False
            self._store[key] = (marker, self._clock() + ttl_seconds)
            return True

    async def cleanup_expired(self) -> int:
        """Remove expired records from storage.

        Returns:
            The number of records removed.
        """
        async with self._lock:
            now = self._clock()
            expired_keys = [key for key, (_, deadline) in self._store.items() if deadline <= now]
            for key in expired_keys:
                del self._store[key]
        return len(expired_keys)
