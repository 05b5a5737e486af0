"""Forwarding of a buffered inbound request to one origin.

The forwarder rebuilds the inbound request against an origin's base URL,
sends it with a shared ``httpx.AsyncClient`` and classifies the answer:

1. Outbound URL: origin base (path prefix kept) + inbound path + query
2. Method and headers copied verbatim, Host included; only the body
   framing headers are recomputed by httpx
3. GET and HEAD never carry a body; every other method carries the
   buffered bytes, identical on every attempt
4. Redirects are followed by the client
5. 2xx: the raw response body and non hop-by-hop headers are returned,
   headers as latin-1 strings so their original bytes survive
6. Anything else, or a transport error: an UpstreamFailure is returned and
   the origin's response is discarded unread

Examples:
    Forwarding to one origin::

        import httpx
        from failover_proxy.core.forwarder import RequestForwarder

        async with httpx.AsyncClient() as client:
            forwarder = RequestForwarder(client)
            result = await forwarder.forward("https://a.internal", request)
"""

import time

import httpx

from failover_proxy.models import (
    FailureKind,
    Forwarded,
    ForwardResult,
    InboundRequest,
    ProxyResponse,
    UpstreamFailure,
)
from failover_proxy.observability.logging import get_logger
from failover_proxy.observability.metrics import record_upstream_attempt
from failover_proxy.utils.headers import filter_request_headers, filter_response_headers

logger = get_logger(__name__)

BODYLESS_METHODS = {"GET", "HEAD"}


def build_target_url(origin_url: str, request: InboundRequest) -> str:
    """Combine an origin base URL with the inbound path and query.

    Examples:
        >>> req = InboundRequest("GET", "/users", "page=2", [], b"")
        >>> build_target_url("https://a.internal/api/", req)
        'https://a.internal/api/users?page=2'
    """
    url = origin_url.rstrip("/") + request.path
    if request.query_string:
        url = f"{url}?{request.query_string}"
    return url


async def _read_raw_body(response: httpx.Response) -> bytes:
    # Raw bytes keep the origin's content-encoding intact
    try:
        return b"".join([chunk async for chunk in response.aiter_raw()])
    except httpx.StreamConsumed:
        # Transports that hand back pre-read responses (e.g. MockTransport)
        return response.content


def _raw_headers(response: httpx.Response) -> list[tuple[str, str]]:
    # latin-1 maps every byte to one character, so the pairs re-encode exactly
    return [
        (key.decode("latin-1"), value.decode("latin-1")) for key, value in response.headers.raw
    ]


class RequestForwarder:
    """Sends inbound requests to origins and validates the answer.

    Attributes:
        client: Shared async HTTP client. Redirect following is requested
            per request, so any client configuration works.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    def build_request(self, origin_url: str, request: InboundRequest) -> httpx.Request:
        """Build the outbound request for ``origin_url``.

        Header pairs go out as the bytes the client sent; httpx would
        otherwise encode ``str`` values as ASCII.
        """
        content = None if request.method in BODYLESS_METHODS else request.body
        headers = [
            (key.encode("latin-1"), value.encode("latin-1"))
            for key, value in filter_request_headers(request.headers)
        ]
        return self.client.build_request(
            request.method,
            build_target_url(origin_url, request),
            headers=headers,
            content=content,
        )

    async def forward(self, origin_url: str, request: InboundRequest) -> ForwardResult:
        """Send ``request`` to ``origin_url``.

        Args:
            origin_url: Base URL of the origin.
            request: The buffered inbound request.

        Returns:
            Forwarded with the origin's response on a 2xx status,
            UpstreamFailure otherwise.
        """
        outbound = self.build_request(origin_url, request)
        started = time.perf_counter()

        try:
            response = await self.client.send(outbound, stream=True, follow_redirects=True)
        except httpx.RequestError as e:
            latency = time.perf_counter() - started
            record_upstream_attempt("transport_error", latency)
            logger.warning(
                "upstream.unreachable",
                origin=origin_url,
                method=request.method,
                path=request.path,
                error=str(e),
                error_type=type(e).__name__,
                latency_ms=int(latency * 1000),
            )
            return UpstreamFailure(
                origin=origin_url,
                kind=FailureKind.TRANSPORT,
                reason=f"{type(e).__name__}: {e}",
            )

        latency = time.perf_counter() - started

        try:
            if not response.is_success:
                record_upstream_attempt("status_error", latency)
                logger.warning(
                    "upstream.failed",
                    origin=origin_url,
                    method=request.method,
                    path=request.path,
                    status_code=response.status_code,
                    latency_ms=int(latency * 1000),
                )
                return UpstreamFailure(
                    origin=origin_url,
                    kind=FailureKind.STATUS,
                    status_code=response.status_code,
                    reason=f"HTTP error! status: {response.status_code}",
                )

            body = await _read_raw_body(response)
        except httpx.RequestError as e:
            record_upstream_attempt("transport_error", latency)
            logger.warning(
                "upstream.body_failed",
                origin=origin_url,
                status_code=response.status_code,
                error=str(e),
                error_type=type(e).__name__,
            )
            return UpstreamFailure(
                origin=origin_url,
                kind=FailureKind.TRANSPORT,
                status_code=response.status_code,
                reason=f"{type(e).__name__}: {e}",
            )
        finally:
            await response.aclose()

        record_upstream_attempt("success", latency)
        logger.debug(
            "upstream.succeeded",
            origin=origin_url,
            method=request.method,
            path=request.path,
            status_code=response.status_code,
            latency_ms=int(latency * 1000),
        )

        return Forwarded(
            origin=origin_url,
            response=ProxyResponse(
                status=response.status_code,
                headers=filter_response_headers(_raw_headers(response)),
                body=body,
            ),
        )
