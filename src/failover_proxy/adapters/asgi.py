"""ASGI application serving the failover proxy.

This module wraps the framework-agnostic dispatcher in a Starlette
application with a single catch-all route, so every method and path reaches
the proxy.

The application:
1. Reads the request body once and converts the request to InboundRequest
2. Runs the dispatcher, cancelling it if the client disconnects
3. Converts the ProxyResponse back to a Starlette Response, keeping
   repeated headers

Examples:
    Serving with uvicorn::

        import uvicorn
        from failover_proxy.adapters.asgi import create_app
        from failover_proxy.config import ProxyConfig

        app = create_app(ProxyConfig.from_env())
        uvicorn.run(app, host="0.0.0.0", port=8080)

    Injecting collaborators in tests::

        app = create_app(
            config,
            storage=MemoryStorageAdapter(),
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
import httpx
from starlette.applications import Starlette
from starlette.requests import Request as StarletteRequest
from starlette.responses import Response
from starlette.routing import Route

from failover_proxy.config import ProxyConfig
from failover_proxy.core.cleanup import start_cleanup_task, stop_cleanup_task
from failover_proxy.core.dispatcher import EdgeDispatcher
from failover_proxy.core.forwarder import RequestForwarder
from failover_proxy.core.idempotency import IdempotencyCache
from failover_proxy.core.orchestrator import FailoverOrchestrator
from failover_proxy.models import InboundRequest, ProxyResponse
from failover_proxy.observability.logging import get_logger
from failover_proxy.storage.base import StorageAdapter
from failover_proxy.storage.memory import MemoryStorageAdapter
from failover_proxy.storage.redis import RedisStorageAdapter

logger = get_logger(__name__)

# Status logged for requests whose client went away (nginx convention)
CLIENT_CLOSED_REQUEST = 499

PROXIED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]

# 1xx, 204 and 304 responses have no body and no content-length
BODYLESS_STATUSES = frozenset([*range(100, 200), 204, 304])


def build_storage(config: ProxyConfig) -> StorageAdapter:
    """Create the storage adapter selected by the configuration."""
    if config.storage_adapter == "redis":
        return RedisStorageAdapter.from_url(config.redis_url, key_prefix=config.redis_key_prefix)
    return MemoryStorageAdapter()


def build_client(config: ProxyConfig) -> httpx.AsyncClient:
    """Create the shared upstream HTTP client."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.upstream_timeout_seconds),
        follow_redirects=True,
    )


async def convert_request(request: StarletteRequest) -> InboundRequest:
    """Convert a Starlette request into a buffered InboundRequest.

    The body is read here, once, before any forwarding attempt.
    """
    body = await request.body()
    # raw_path keeps percent-escapes exactly as the client sent them
    raw_path = request.scope.get("raw_path")
    path = raw_path.split(b"?", 1)[0].decode("latin-1") if raw_path else request.url.path
    headers = [
        (key.decode("latin-1"), value.decode("latin-1")) for key, value in request.headers.raw
    ]
    return InboundRequest(
        method=request.method,
        path=path,
        query_string=request.url.query or "",
        headers=headers,
        body=body,
    )


def convert_response(response: ProxyResponse) -> Response:
    """Convert a ProxyResponse into a Starlette Response.

    Raw headers are set directly so repeated names survive. A content-length
    is added when the origin did not send one (chunked upstream responses),
    except for statuses that never carry a body.
    """
    result = Response(content=response.body, status_code=response.status)
    raw_headers = [
        (key.lower().encode("latin-1"), value.encode("latin-1"))
        for key, value in response.headers
    ]
    if response.status not in BODYLESS_STATUSES and not any(
        key == b"content-length" for key, _ in raw_headers
    ):
        raw_headers.append((b"content-length", str(len(response.body)).encode("latin-1")))
    result.raw_headers = raw_headers
    return result


async def dispatch_until_disconnect(
    request: StarletteRequest,
    dispatcher: EdgeDispatcher,
    inbound: InboundRequest,
) -> ProxyResponse | None:
    """Run the dispatcher, aborting it if the client disconnects.

    The body has already been consumed, so the next ASGI message can only
    be http.disconnect.

    Returns:
        The dispatcher's response, or None if the client went away first.
    """
    result: ProxyResponse | None = None

    async with anyio.create_task_group() as tg:

        async def watch_disconnect() -> None:
            while True:
                message = await request.receive()
                if message["type"] == "http.disconnect":
                    logger.info(
                        "dispatch.client_disconnected",
                        method=inbound.method,
                        path=inbound.path,
                    )
                    tg.cancel_scope.cancel()
                    return

        async def run_dispatch() -> None:
            nonlocal result
            result = await dispatcher.handle(inbound)
            tg.cancel_scope.cancel()

        tg.start_soon(watch_disconnect)
        tg.start_soon(run_dispatch)

    return result


def create_app(
    config: ProxyConfig,
    storage: StorageAdapter | None = None,
    client: httpx.AsyncClient | None = None,
) -> Starlette:
    """Build the proxy application.

    Args:
        config: Proxy configuration
        storage: Idempotency store. Built from config when omitted.
        client: Upstream HTTP client. When omitted, one is created and
            closed by the application lifespan.

    Returns:
        A Starlette application handling every method and path.
    """
    storage = storage if storage is not None else build_storage(config)
    owns_client = client is None
    http_client = client if client is not None else build_client(config)

    forwarder = RequestForwarder(http_client)
    dispatcher = EdgeDispatcher(
        config=config,
        cache=IdempotencyCache(
            storage,
            ttl_seconds=config.idempotency_ttl_seconds,
            atomic=config.atomic_dedup,
        ),
        orchestrator=FailoverOrchestrator(forwarder),
        forwarder=forwarder,
    )

    async def proxy_endpoint(request: StarletteRequest) -> Response:
        inbound = await convert_request(request)
        result = await dispatch_until_disconnect(request, dispatcher, inbound)
        if result is None:
            return Response(status_code=CLIENT_CLOSED_REQUEST)
        return convert_response(result)

    @asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        cleanup = None
        if isinstance(storage, MemoryStorageAdapter):
            cleanup = await start_cleanup_task(storage, config.cleanup_interval_seconds)
        logger.info(
            "proxy.started",
            primaries=[origin.url for origin in config.primary_origins],
            fallback=config.fallback_origin,
            storage=type(storage).__name__,
        )
        try:
            yield
        finally:
            if cleanup is not None:
                await stop_cleanup_task(cleanup)
            if owns_client:
                await http_client.aclose()
            if isinstance(storage, RedisStorageAdapter):
                await storage.close()
            logger.info("proxy.stopped")

    app = Starlette(
        routes=[Route("/{path:path}", proxy_endpoint, methods=PROXIED_METHODS)],
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.dispatcher = dispatcher
    app.state.storage = storage
    return app
