"""Unit tests for the ASGI application layer."""

import anyio
import httpx
import pytest
from starlette.requests import Request as StarletteRequest
from starlette.testclient import TestClient

from failover_proxy.adapters.asgi import (
    CLIENT_CLOSED_REQUEST,
    build_client,
    build_storage,
    convert_request,
    convert_response,
    create_app,
    dispatch_until_disconnect,
)
from failover_proxy.models import ProxyResponse
from failover_proxy.storage.memory import MemoryStorageAdapter
from failover_proxy.storage.redis import RedisStorageAdapter
from support import FakeOrigins, make_request


def starlette_request(messages, path=b"/a%2Fb", query=b"x=1&y=%20") -> StarletteRequest:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/a/b",
        "raw_path": path,
        "query_string": query,
        "headers": [(b"host", b"edge.test"), (b"x-tag", b"1"), (b"x-tag", b"2")],
    }
    queue = list(messages)

    async def receive():
        if queue:
            return queue.pop(0)
        await anyio.sleep_forever()

    return StarletteRequest(scope, receive)


class HangingDispatcher:
    def __init__(self) -> None:
        self.cancelled = False

    async def handle(self, request):
        try:
            await anyio.sleep_forever()
        except anyio.get_cancelled_exc_class():
            self.cancelled = True
            raise


class InstantDispatcher:
    async def handle(self, request):
        return ProxyResponse(204, [], b"")


class TestConvertRequest:
    @pytest.mark.asyncio
    async def test_buffers_body_and_keeps_raw_path(self):
        request = starlette_request(
            [
                {"type": "http.request", "body": b"part-1,", "more_body": True},
                {"type": "http.request", "body": b"part-2", "more_body": False},
            ]
        )

        inbound = await convert_request(request)

        assert inbound.method == "POST"
        assert inbound.path == "/a%2Fb"
        assert inbound.query_string == "x=1&y=%20"
        assert inbound.body == b"part-1,part-2"
        assert inbound.headers == [("host", "edge.test"), ("x-tag", "1"), ("x-tag", "2")]


class TestConvertResponse:
    def test_keeps_repeated_headers(self):
        response = convert_response(
            ProxyResponse(200, [("Set-Cookie", "a=1"), ("set-cookie", "b=2")], b"ok")
        )

        assert response.status_code == 200
        assert response.body == b"ok"
        assert response.raw_headers == [
            (b"set-cookie", b"a=1"),
            (b"set-cookie", b"b=2"),
            (b"content-length", b"2"),
        ]

    def test_existing_content_length_kept(self):
        response = convert_response(ProxyResponse(200, [("content-length", "2")], b"ok"))
        assert response.raw_headers == [(b"content-length", b"2")]

    @pytest.mark.parametrize("status", [101, 204, 304])
    def test_no_content_length_for_bodyless_status(self, status):
        response = convert_response(ProxyResponse(status, [("etag", "v1")], b""))
        assert response.raw_headers == [(b"etag", b"v1")]

    def test_header_bytes_written_back_unchanged(self):
        value = "10 €".encode("utf-8")
        response = convert_response(ProxyResponse(200, [("X-Price", value.decode("latin-1"))], b""))
        assert (b"x-price", value) in response.raw_headers


class TestDispatchUntilDisconnect:
    @pytest.mark.asyncio
    async def test_disconnect_cancels_dispatch(self):
        dispatcher = HangingDispatcher()
        request = starlette_request([{"type": "http.disconnect"}])

        with anyio.fail_after(2):
            result = await dispatch_until_disconnect(request, dispatcher, make_request())

        assert result is None
        assert dispatcher.cancelled

    @pytest.mark.asyncio
    async def test_result_returned_when_client_stays(self):
        request = starlette_request([])

        with anyio.fail_after(2):
            result = await dispatch_until_disconnect(request, InstantDispatcher(), make_request())

        assert result.status == 204


def test_client_closed_status():
    assert CLIENT_CLOSED_REQUEST == 499


class TestBuilders:
    def test_memory_storage_by_default(self, config):
        assert isinstance(build_storage(config), MemoryStorageAdapter)

    def test_redis_storage(self, make_config):
        storage = build_storage(
            make_config(storage_adapter="redis", redis_url="redis://cache:6379/0")
        )
        assert isinstance(storage, RedisStorageAdapter)
        assert storage.key_prefix == "edge:event:"

    def test_client_timeout(self, make_config):
        client = build_client(make_config(upstream_timeout_seconds=2.5))
        assert client.timeout.read == 2.5
        assert client.follow_redirects

    def test_client_without_timeout(self, make_config):
        client = build_client(make_config(upstream_timeout_seconds=None))
        assert client.timeout.connect is None


class TestCreateApp:
    def test_every_method_reaches_proxy(self, config, origins: FakeOrigins, http_client):
        origins.respond("a", 200, content=b"a")
        origins.respond("b", 200, content=b"b")
        app = create_app(config, storage=MemoryStorageAdapter(), client=http_client)

        with TestClient(app) as client:
            for method in ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]:
                assert client.request(method, "/any/path").status_code == 200

    def test_injected_client_left_open(self, config, http_client):
        app = create_app(config, storage=MemoryStorageAdapter(), client=http_client)

        with TestClient(app):
            pass

        assert not http_client.is_closed

    def test_state_exposed(self, config):
        storage = MemoryStorageAdapter()
        app = create_app(config, storage=storage, client=httpx.AsyncClient())

        assert app.state.config is config
        assert app.state.storage is storage
        assert app.state.dispatcher.config is config


def test_non_ascii_headers_round_trip_through_app(config, origins: FakeOrigins, http_client):
    price = "10 €".encode("utf-8")
    origins.respond("a", 200, content=b"ok", headers=[(b"x-price", price)])
    origins.respond("b", 200, content=b"ok", headers=[(b"x-price", price)])
    app = create_app(config, storage=MemoryStorageAdapter(), client=http_client)

    with TestClient(app) as client:
        response = client.get("/menu", headers=[(b"x-name", "café".encode("utf-8"))])

    assert response.status_code == 200
    assert (b"x-price", price) in response.headers.raw
    assert (b"x-name", "café".encode("utf-8")) in origins.requests[0].headers.raw
