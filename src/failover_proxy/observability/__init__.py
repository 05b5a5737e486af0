"""Observability utilities for the failover proxy.

This package provides monitoring and debugging capabilities:
- Prometheus metrics for routing, failover and deduplication
- Structured logging with contextual information
"""

from failover_proxy.observability.logging import configure_logging, get_logger
from failover_proxy.observability.metrics import (
    record_cleanup,
    record_dedup_decision,
    record_request,
    record_upstream_attempt,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "record_request",
    "record_upstream_attempt",
    "record_dedup_decision",
    "record_cleanup",
]
