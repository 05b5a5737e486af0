"""Single-pass failover across the weighted primary origins.

For each inbound request the orchestrator works on its own copy of the
configured primary list (the working pool):

    select (weighted) -> forward -> success: return
                                 -> failure: drop origin from pool, repeat

No origin is tried twice for one request and nothing carries over between
requests. When the pool runs dry the caller gets AllOriginsFailed and
decides what to do next (the dispatcher tries the fallback origin).

Examples:
    Routing a request::

        from failover_proxy.core.orchestrator import FailoverOrchestrator

        orchestrator = FailoverOrchestrator(forwarder)
        outcome = await orchestrator.route_to_primaries(request, config.primary_origins)

        if isinstance(outcome, Forwarded):
            return outcome.response
"""

from collections.abc import Callable, Sequence

from failover_proxy.core.forwarder import RequestForwarder
from failover_proxy.core.selector import select_origin
from failover_proxy.models import (
    AllOriginsFailed,
    Forwarded,
    InboundRequest,
    Origin,
    RouteResult,
    UpstreamFailure,
)
from failover_proxy.observability.logging import get_logger

logger = get_logger(__name__)

Selector = Callable[[Sequence[Origin]], Origin]


class FailoverOrchestrator:
    """Drives select-and-forward attempts over a shrinking working pool.

    Attributes:
        forwarder: Sends one attempt to one origin.
        selector: Picks an origin from the working pool. Defaults to
            weighted-random selection.
    """

    def __init__(self, forwarder: RequestForwarder, selector: Selector = select_origin) -> None:
        self.forwarder = forwarder
        self.selector = selector

    async def route_to_primaries(
        self,
        request: InboundRequest,
        primary_origins: Sequence[Origin],
    ) -> RouteResult:
        """Try primaries until one succeeds or all have failed once.

        Args:
            request: The buffered inbound request, reused on every attempt.
            primary_origins: Configured primaries. Never modified.

        Returns:
            Forwarded from the first origin that succeeded, or
            AllOriginsFailed listing every failed attempt in order.
        """
        pool = list(primary_origins)
        failures: list[UpstreamFailure] = []

        while pool:
            origin = self.selector(pool)
            result = await self.forwarder.forward(origin.url, request)

            if isinstance(result, Forwarded):
                if failures:
                    logger.info(
                        "failover.recovered",
                        origin=origin.url,
                        failed_origins=[f.origin for f in failures],
                    )
                return result

            failures.append(result)
            pool = [candidate for candidate in pool if candidate.url != origin.url]
            logger.info(
                "failover.origin_dropped",
                origin=origin.url,
                kind=result.kind.value,
                status_code=result.status_code,
                remaining=len(pool),
            )

        outcome = AllOriginsFailed(failures)
        logger.warning("failover.exhausted", attempted=outcome.attempted)
        return outcome
