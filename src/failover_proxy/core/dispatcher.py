"""Framework-agnostic entry point of the failover proxy.

The dispatcher is the boundary between an HTTP framework and the routing
core. Given a fully buffered request it:

1. Recognizes the webhook event path (POST + configured path)
2. Checks the Authorization header against the master token
3. Deduplicates the delivery through the idempotency cache
4. Routes the request across the primary origins
5. Falls back to the fallback origin once if every primary failed
6. Synthesizes a JSON error when nothing else worked

Examples:
    Using the dispatcher directly::

        from failover_proxy.core.dispatcher import EdgeDispatcher

        dispatcher = EdgeDispatcher(config, cache, orchestrator, forwarder)
        response = await dispatcher.handle(request)
"""

import hmac
import json

from failover_proxy.config import ProxyConfig
from failover_proxy.core.forwarder import RequestForwarder
from failover_proxy.core.idempotency import IdempotencyCache
from failover_proxy.core.orchestrator import FailoverOrchestrator
from failover_proxy.exceptions import StorageError
from failover_proxy.models import (
    Forwarded,
    InboundRequest,
    IngestDecision,
    ProxyResponse,
    RouteResult,
)
from failover_proxy.observability.logging import get_logger
from failover_proxy.observability.metrics import record_request
from failover_proxy.utils.headers import error_headers

logger = get_logger(__name__)

DUPLICATE_EVENT_BODY = b"DUPLICATE_EVENT"


def json_error(detail: str, status: int) -> ProxyResponse:
    """Build a synthesized error response.

    Examples:
        >>> json_error("Unauthorized", 401).body
        b'{"detail": "Unauthorized"}'
    """
    return ProxyResponse(
        status=status,
        headers=error_headers(),
        body=json.dumps({"detail": detail}).encode("utf-8"),
    )


class EdgeDispatcher:
    """Top-level request handler.

    Attributes:
        config: Immutable proxy configuration
        cache: Idempotency cache for the webhook event path
        orchestrator: Failover across primary origins
        forwarder: Used directly for the fallback attempt
    """

    def __init__(
        self,
        config: ProxyConfig,
        cache: IdempotencyCache,
        orchestrator: FailoverOrchestrator,
        forwarder: RequestForwarder,
    ) -> None:
        self.config = config
        self.cache = cache
        self.orchestrator = orchestrator
        self.forwarder = forwarder

    def is_event_request(self, request: InboundRequest) -> bool:
        """True for POST requests to the webhook event path."""
        return request.method == "POST" and request.path == self.config.event_path

    def is_authorized(self, request: InboundRequest) -> bool:
        """Check the Authorization header against the master token exactly."""
        supplied = request.header("authorization")
        if supplied is None:
            return False
        return hmac.compare_digest(
            supplied.encode("latin-1"), self.config.master_token.encode("utf-8")
        )

    async def handle(self, request: InboundRequest) -> ProxyResponse:
        """Handle one inbound request.

        Args:
            request: The inbound request with its body already buffered.

        Returns:
            The upstream response on success, otherwise a synthesized one.
        """
        if self.is_event_request(request):
            early = await self._ingest_event(request)
            if early is not None:
                return early

        return await self._proxy(request)

    async def _ingest_event(self, request: InboundRequest) -> ProxyResponse | None:
        """Authorize and deduplicate a webhook delivery.

        Returns:
            A terminal response, or None when the event was accepted and
            should be proxied like any other request.
        """
        if not self.is_authorized(request):
            logger.warning("event.unauthorized", path=request.path)
            record_request("unauthorized", 401)
            return json_error("Unauthorized", 401)

        try:
            decision = await self.cache.check_and_record(request.body)
        except StorageError as e:
            logger.error(
                "event.store_unavailable",
                error=str(e),
                cause_type=type(e.cause).__name__ if e.cause else None,
            )
            record_request("store_error", 500)
            return json_error("Internal Server Error", 500)
        except Exception:
            logger.exception("event.dedup_failed")
            record_request("store_error", 500)
            return json_error("Internal Server Error", 500)

        if decision is IngestDecision.DUPLICATE:
            record_request("duplicate", 200)
            return ProxyResponse(
                status=200,
                headers=[("content-type", "text/plain;charset=UTF-8")],
                body=DUPLICATE_EVENT_BODY,
            )

        return None

    async def _proxy(self, request: InboundRequest) -> ProxyResponse:
        outcome: RouteResult | None
        try:
            outcome = await self.orchestrator.route_to_primaries(
                request, self.config.primary_origins
            )
        except Exception:
            logger.exception("dispatch.primaries_crashed", path=request.path)
            outcome = None

        if isinstance(outcome, Forwarded):
            record_request("primary", outcome.response.status)
            logger.info(
                "dispatch.completed",
                method=request.method,
                path=request.path,
                origin=outcome.origin,
                status_code=outcome.response.status,
            )
            return outcome.response

        fallback_url = self.config.fallback_origin
        try:
            result = await self.forwarder.forward(fallback_url, request)
        except Exception:
            logger.exception("dispatch.fallback_crashed", origin=fallback_url)
            result = None

        if isinstance(result, Forwarded):
            record_request("fallback", result.response.status)
            logger.info(
                "dispatch.completed",
                method=request.method,
                path=request.path,
                origin=fallback_url,
                status_code=result.response.status,
                fallback=True,
            )
            return result.response

        logger.error(
            "dispatch.failed",
            method=request.method,
            path=request.path,
            fallback_origin=fallback_url,
            fallback_status=result.status_code if result is not None else None,
        )
        record_request("failed", 500)
        return json_error("Internal Server Error", 500)
