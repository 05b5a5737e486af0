"""Redis storage adapter for idempotency records.

Records are plain string keys with a Redis-managed expiry (``SET ... EX``),
so several proxy processes share one dedup window and no sweep is needed.
The conditional write maps onto ``SET ... NX EX``, which Redis executes
atomically.

Examples:
    Connecting from a URL::

        from failover_proxy.storage.redis import RedisStorageAdapter

        adapter = RedisStorageAdapter.from_url("redis://cache:6379/0")
        written = await adapter.put_if_absent("5e88...a1", "1", ttl_seconds=300)
        await adapter.close()
"""

from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from failover_proxy.exceptions import StorageError
from failover_proxy.storage.base import StorageAdapter


class RedisStorageAdapter(StorageAdapter):
    """Storage adapter backed by ``redis.asyncio``.

    Attributes:
        client: Async Redis client. Must be created with decode_responses=True
            or return bytes; both are handled.
        key_prefix: Prefix prepended to every idempotency key.
    """

    def __init__(self, client: Any, key_prefix: str = "edge:event:") -> None:
        self.client = client
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "edge:event:") -> "RedisStorageAdapter":
        """Create an adapter with a new connection pool for ``url``."""
        return cls(redis.Redis.from_url(url, decode_responses=True), key_prefix=key_prefix)

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> str | None:
        """Return the marker for ``key``; Redis has already dropped expired keys."""
        try:
            value = await self.client.get(self._key(key))
        except RedisError as e:
            raise StorageError(f"Failed to read key from Redis: {e}", cause=e) from e
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def put(self, key: str, marker: str, ttl_seconds: int) -> None:
        try:
            await self.client.set(self._key(key), marker, ex=ttl_seconds)
        except RedisError as e:
            raise StorageError(f"Failed to write key to Redis: {e}", cause=e) from e

    async def put_if_absent(self, key: str, marker: str, ttl_seconds: int) -> bool:
        # SET NX returns None when the key already exists
        try:
            written = await self.client.set(self._key(key), marker, ex=ttl_seconds, nx=True)
        except RedisError as e:
            raise StorageError(f"Failed to write key to Redis: {e}", cause=e) from e
        return bool(written)

    async def cleanup_expired(self) -> int:
        return 0

    async def close(self) -> None:
        """Release the client's connections."""
        await self.client.aclose()
