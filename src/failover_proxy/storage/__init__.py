"""Storage adapters for idempotency records.

This package provides the backends the idempotency cache records accepted
webhook bodies in. All adapters implement the StorageAdapter protocol
defined in base.py.

Available Adapters:
    - MemoryStorageAdapter: In-process storage with monotonic-clock expiry
    - RedisStorageAdapter: Shared Redis storage with server-side expiry
"""

from failover_proxy.storage.base import StorageAdapter
from failover_proxy.storage.memory import MemoryStorageAdapter
from failover_proxy.storage.redis import RedisStorageAdapter

__all__ = [
    "StorageAdapter",
    "MemoryStorageAdapter",
    "RedisStorageAdapter",
]
