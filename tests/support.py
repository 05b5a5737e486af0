"""Test helpers shared by unit and scenario tests."""

from collections.abc import Callable
from typing import Any

import httpx

from failover_proxy.models import InboundRequest

Handler = Callable[[httpx.Request], httpx.Response]


class FakeOrigins:
    """Routes outbound requests to per-host handlers and records them.

    Hosts without a handler raise httpx.ConnectError, like an origin that
    is down.
    """

    def __init__(self) -> None:
        self.handlers: dict[str, Handler] = {}
        self.requests: list[httpx.Request] = []

    def route(self, host: str, handler: Handler) -> None:
        self.handlers[host] = handler

    def respond(self, host: str, status: int, **kwargs: Any) -> None:
        self.route(host, lambda request: httpx.Response(status, **kwargs))

    def down(self, host: str) -> None:
        self.handlers.pop(host, None)

    @property
    def hosts_called(self) -> list[str]:
        return [request.url.host for request in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.handlers.get(request.url.host)
        if handler is None:
            raise httpx.ConnectError(f"connection refused: {request.url.host}", request=request)
        return handler(request)


def make_request(
    method: str = "GET",
    path: str = "/",
    query_string: str = "",
    headers: list[tuple[str, str]] | None = None,
    body: bytes = b"",
) -> InboundRequest:
    return InboundRequest(
        method=method,
        path=path,
        query_string=query_string,
        headers=headers if headers is not None else [("host", "edge.test")],
        body=body,
    )


class ASGIOrigins:
    """Routes outbound requests by host to in-process ASGI applications.

    Lets scenario tests run real FastAPI apps as origins behind one
    MockTransport. Hosts without an app are unreachable.
    """

    def __init__(self, **apps: Any) -> None:
        self.transports = {host: httpx.ASGITransport(app=app) for host, app in apps.items()}
        self.hosts_called: list[str] = []

    def take_down(self, host: str) -> None:
        self.transports.pop(host, None)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.hosts_called.append(request.url.host)
        transport = self.transports.get(request.url.host)
        if transport is None:
            raise httpx.ConnectError(f"connection refused: {request.url.host}", request=request)
        response = await transport.handle_async_request(request)
        await response.aread()
        return response
