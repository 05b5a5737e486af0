"""Framework adapters for the failover proxy.

- asgi.py: Starlette application for any ASGI server (uvicorn, hypercorn)

The adapters convert framework requests into the core's InboundRequest and
ProxyResponse types and own the process-level resources (HTTP client,
idempotency store, cleanup task).
"""

from failover_proxy.adapters.asgi import create_app

__all__ = ["create_app"]
