"""Content-addressed idempotency cache for webhook deliveries.

Webhook senders retry deliveries they believe failed. The cache recognizes a
retried delivery by the SHA-256 digest of its body and reports it as a
duplicate for as long as the record lives in the store (300 seconds by
default).

Two modes are available:

    check-then-write (default)
        get() followed by put(). Two byte-identical deliveries arriving at
        the same moment can both read "absent" and both be accepted. Dedup
        is best effort in this mode.

    atomic
        A single put_if_absent(). The store decides, so exactly one of the
        concurrent deliveries is accepted.

Examples:
    Checking a delivery::

        from failover_proxy.core.idempotency import IdempotencyCache
        from failover_proxy.models import IngestDecision
        from failover_proxy.storage.memory import MemoryStorageAdapter

        cache = IdempotencyCache(MemoryStorageAdapter())

        if await cache.check_and_record(body) is IngestDecision.DUPLICATE:
            return ProxyResponse(200, [], b"DUPLICATE_EVENT")
"""

from failover_proxy.fingerprint import compute_idempotency_key
from failover_proxy.models import IngestDecision
from failover_proxy.observability.logging import get_logger
from failover_proxy.observability.metrics import record_dedup_decision
from failover_proxy.storage.base import StorageAdapter

logger = get_logger(__name__)

RECORD_MARKER = "1"
DEFAULT_TTL_SECONDS = 300


class IdempotencyCache:
    """Detects repeated webhook bodies within a time window.

    Attributes:
        storage: Backend holding one record per accepted body.
        ttl_seconds: Lifetime of a record.
        atomic: Use the store's conditional write instead of get+put.
    """

    def __init__(
        self,
        storage: StorageAdapter,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        atomic: bool = False,
    ) -> None:
        self.storage = storage
        self.ttl_seconds = ttl_seconds
        self.atomic = atomic

    async def check_and_record(self, body: bytes) -> IngestDecision:
        """Report whether ``body`` was already accepted, recording it if not.

        Args:
            body: Raw request body.

        Returns:
            DUPLICATE if a live record exists (nothing is written),
            ACCEPTED if a new record was written.

        Raises:
            StorageError: If the store cannot be read or written. A failed
                lookup is never reported as ACCEPTED.
        """
        key = compute_idempotency_key(body)

        if self.atomic:
            written = await self.storage.put_if_absent(key, RECORD_MARKER, self.ttl_seconds)
            decision = IngestDecision.ACCEPTED if written else IngestDecision.DUPLICATE
        elif await self.storage.get(key) is not None:
            decision = IngestDecision.DUPLICATE
        else:
            await self.storage.put(key, RECORD_MARKER, self.ttl_seconds)
            decision = IngestDecision.ACCEPTED

        record_dedup_decision(decision.value)
        if decision is IngestDecision.DUPLICATE:
            logger.info("idempotency.duplicate", key=key)
        else:
            logger.debug("idempotency.accepted", key=key, ttl_seconds=self.ttl_seconds)

        return decision
