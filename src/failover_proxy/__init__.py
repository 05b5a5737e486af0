"""
Weighted failover edge proxy with idempotent webhook ingestion.

This package routes inbound HTTP requests to weighted primary origins,
falls back to a single fallback origin when every primary fails, and
deduplicates retried webhook deliveries by the digest of their body.
"""

__version__ = "0.1.0"

from failover_proxy.adapters.asgi import create_app
from failover_proxy.config import ProxyConfig
from failover_proxy.models import Origin

__all__ = ["__version__", "create_app", "ProxyConfig", "Origin"]
