"""Prometheus metrics for the failover proxy.

This module provides Prometheus metrics to monitor routing behavior.
Metrics include:

- Inbound request counters by outcome (primary, fallback, duplicate, ...)
- Upstream attempt counters and latency histogram
- Deduplication decisions
- Cleanup operation tracking for the in-memory store

Origin URLs are deliberately not used as labels: they come from
configuration and a changed origin list would leave stale series behind.

Examples:
    Recording an inbound request::

        from failover_proxy.observability.metrics import record_request

        record_request(outcome="fallback", status_code=200)

    Recording an upstream attempt::

        from failover_proxy.observability.metrics import record_upstream_attempt

        record_upstream_attempt(result="transport_error", latency_seconds=0.03)
"""

from prometheus_client import Counter, Histogram

# Inbound request counter
# Labels: outcome (primary, fallback, duplicate, unauthorized, store_error, failed), status_code
requests_total = Counter(
    "edge_requests_total",
    "Total number of inbound requests handled by the proxy",
    ["outcome", "status_code"],
)

# Upstream attempt counter
# Labels: result (success, status_error, transport_error)
upstream_attempts_total = Counter(
    "edge_upstream_attempts_total",
    "Total number of forwarding attempts made to origins",
    ["result"],
)

upstream_latency_seconds = Histogram(
    "edge_upstream_latency_seconds",
    "Latency of a single forwarding attempt in seconds",
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# Labels: decision (ACCEPTED, DUPLICATE)
dedup_decisions_total = Counter(
    "edge_dedup_decisions_total",
    "Total number of webhook deduplication decisions",
    ["decision"],
)

cleanup_operations = Counter(
    "edge_cleanup_operations_total",
    "Total number of cleanup operations performed",
)

cleanup_records_removed = Counter(
    "edge_cleanup_records_removed_total",
    "Total number of expired idempotency records removed by cleanup",
)


def record_request(outcome: str, status_code: int) -> None:
    """Record a handled inbound request.

    Args:
        outcome: How the request was resolved (primary, fallback, duplicate,
            unauthorized, store_error, failed)
        status_code: HTTP status code returned to the client

    Examples:
        >>> record_request("primary", 200)
        >>> record_request("failed", 500)
    """
    requests_total.labels(outcome=outcome, status_code=str(status_code)).inc()


def record_upstream_attempt(result: str, latency_seconds: float) -> None:
    """Record one forwarding attempt.

    Args:
        result: success, status_error or transport_error
        latency_seconds: Time from sending the request to receiving headers
            (or failing)
    """
    upstream_attempts_total.labels(result=result).inc()
    upstream_latency_seconds.observe(latency_seconds)


def record_dedup_decision(decision: str) -> None:
    """Record the outcome of an idempotency check."""
    dedup_decisions_total.labels(decision=decision).inc()


def record_cleanup(records_removed: int) -> None:
    """Record a cleanup operation.

    Args:
        records_removed: Number of expired records removed

    Examples:
        >>> record_cleanup(42)
    """
    cleanup_operations.inc()
    cleanup_records_removed.inc(records_removed)
