"""Core routing logic of the failover proxy.

This package contains the framework-agnostic parts of the proxy:
- Idempotency: content-addressed dedup of webhook deliveries
- Selector: weighted-random origin choice
- Forwarder: one outbound attempt against one origin
- Orchestrator: single-pass failover across the primary origins
- Dispatcher: auth, dedup, routing and fallback for one inbound request
- Cleanup: periodic sweep of expired in-memory records

Framework adapters (see failover_proxy.adapters) convert real HTTP requests
into InboundRequest objects and hand them to the dispatcher.
"""

from failover_proxy.core.dispatcher import EdgeDispatcher
from failover_proxy.core.forwarder import RequestForwarder
from failover_proxy.core.idempotency import IdempotencyCache
from failover_proxy.core.orchestrator import FailoverOrchestrator
from failover_proxy.core.selector import select_origin

__all__ = [
    "EdgeDispatcher",
    "FailoverOrchestrator",
    "IdempotencyCache",
    "RequestForwarder",
    "select_origin",
]
