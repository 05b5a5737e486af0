"""Storage adapter protocol for idempotency records.

This module defines the interface the idempotency cache uses to remember
which webhook bodies it has already accepted. Any key-value store with
per-key expiry satisfies it: the in-memory adapter for single-process use
and tests, Redis for deployments with several proxy processes.

Examples:
    Implementing a custom storage adapter::

        from failover_proxy.storage.base import StorageAdapter

        class MyStorageAdapter:
            async def get(self, key: str) -> str | None:
                return await self.backend.read(key)

            async def put(self, key: str, marker: str, ttl_seconds: int) -> None:
                await self.backend.write(key, marker, expire=ttl_seconds)

            async def put_if_absent(self, key: str, marker: str, ttl_seconds: int) -> bool:
                return await self.backend.write_new(key, marker, expire=ttl_seconds)

            async def cleanup_expired(self) -> int:
                return 0

Consistency Requirements:
    1. **Expiry**: records whose TTL has passed must read as absent. Whether
       they are physically removed by the store or by cleanup_expired() is
       up to the adapter.

    2. **Visibility**: a put() must be visible to later get() calls from
       other requests (and, for shared stores, other processes). Eventual
       visibility is acceptable; the cache treats dedup as best effort.

    3. **Conditional write**: put_if_absent() must check and write in one
       atomic step. It is only used when atomic deduplication is enabled.

    4. **Errors**: backend failures must be raised as StorageError, never
       reported as a missing record.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class StorageAdapter(Protocol):
    """Protocol defining the interface for idempotency storage backends.

    All methods are async and must be safe to call concurrently from many
    asyncio tasks.

    Error Handling:
        Methods raise StorageError for backend failures (network, timeouts,
        authentication). Backend-specific exceptions must not leak.
    """

    async def get(self, key: str) -> str | None:
        """Return the marker stored under ``key``, or None if absent or expired.

        Examples:
            >>> marker = await adapter.get("5e88...a1")
            >>> marker is None
            True
        """
        ...

    async def put(self, key: str, marker: str, ttl_seconds: int) -> None:
        """Store ``marker`` under ``key`` for ``ttl_seconds`` seconds.

        An existing record for the key is overwritten and its TTL restarted.
        """
        ...

    async def put_if_absent(self, key: str, marker: str, ttl_seconds: int) -> bool:
        """Atomically store ``marker`` only if no live record exists.

        Returns:
            True if the record was written, False if one already existed.
        """
        ...

    async def cleanup_expired(self) -> int:
        """Remove expired records and return how many were removed.

        Adapters whose backend expires keys on its own return 0.
        """
        ...
