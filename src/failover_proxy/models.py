"""Core type definitions for the failover proxy.

This module provides the data structures that flow through the proxy:
origins, the buffered inbound request, the response handed back to the
client, and the outcome values produced by the idempotency cache, the
forwarder and the failover orchestrator.

Outcomes are plain values rather than exceptions. A failed origin or an
exhausted pool happens on every outage, so callers branch on the returned
type instead of catching.

Examples:
    Describing a weighted origin::

        from failover_proxy.models import Origin

        origin = Origin(url="https://api-1.internal", weight=2)

    Branching on a routing outcome::

        outcome = await orchestrator.route_to_primaries(request, origins)
        if isinstance(outcome, Forwarded):
            return outcome.response
        # AllOriginsFailed: try the fallback origin
"""

from enum import Enum
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator


class Origin(BaseModel):
    """A candidate backend with a relative selection weight.

    Attributes:
        url: Absolute http(s) base URL. A path prefix, if present, is kept
            in front of every forwarded path.
        weight: Relative weight. Weights of a pool are summed at selection
            time, so they need not add up to anything in particular.

    Examples:
        >>> Origin(url="https://a.example", weight=1).weight
        1.0
    """

    url: str = Field(
        ...,
        description="Absolute base URL of the origin",
        examples=["https://api-1.internal", "http://10.0.0.5:8080/v1"],
    )
    weight: float = Field(
        default=1.0,
        description="Relative selection weight (> 0)",
        gt=0,
        examples=[1, 2.5],
    )

    model_config = {"frozen": True}

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate that the URL is an absolute http(s) URL.

        Args:
            v: The URL to validate.

        Returns:
            The validated URL.

        Raises:
            ValueError: If the scheme is not http/https or the host is missing.
        """
        return validate_origin_url(v)


def validate_origin_url(url: str) -> str:
    """Check that ``url`` is an absolute http or https URL.

    Shared by :class:`Origin` and the fallback origin setting.
    """
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https"):
        raise ValueError(f"Origin URL must use http or https, got {url!r}")
    if not parts.netloc:
        raise ValueError(f"Origin URL must include a host, got {url!r}")
    if parts.query or parts.fragment:
        raise ValueError(f"Origin URL must not carry a query or fragment, got {url!r}")
    return url


class InboundRequest:
    """Buffered representation of a request received by the proxy.

    The body is read from the client exactly once, before any forwarding
    attempt, and every attempt reuses these bytes.

    Attributes:
        method: HTTP method, upper case.
        path: URL path, always starting with "/".
        query_string: Query string without the leading "?".
        headers: Header pairs in arrival order, decoded as latin-1 so each
            character stands for one wire byte. Repeated names are kept.
        body: Complete request body.
    """

    def __init__(
        self,
        method: str,
        path: str,
        query_string: str,
        headers: list[tuple[str, str]],
        body: bytes,
    ) -> None:
        self.method = method.upper()
        self.path = path or "/"
        self.query_string = query_string
        self.headers = headers
        self.body = body

    def header(self, name: str) -> str | None:
        """Return the first value of a header, matched case-insensitively."""
        name = name.lower()
        for key, value in self.headers:
            if key.lower() == name:
                return value
        return None


class ProxyResponse:
    """A response ready to be written back to the client.

    Either relayed from an origin or synthesized by the dispatcher.

    Attributes:
        status: HTTP status code.
        headers: Header pairs, latin-1 decoded like the request headers.
            Repeated names (e.g. set-cookie) are kept.
        body: Response body as bytes.
    """

    def __init__(self, status: int, headers: list[tuple[str, str]], body: bytes) -> None:
        self.status = status
        self.headers = headers
        self.body = body

    def header(self, name: str) -> str | None:
        """Return the first value of a header, matched case-insensitively."""
        name = name.lower()
        for key, value in self.headers:
            if key.lower() == name:
                return value
        return None


class IngestDecision(str, Enum):
    """Result of checking a webhook body against the idempotency cache.

    Attributes:
        ACCEPTED: The body was not seen within the TTL and is now recorded.
        DUPLICATE: A record for this body already exists; nothing was written.
    """

    ACCEPTED = "ACCEPTED"
    DUPLICATE = "DUPLICATE"


class FailureKind(str, Enum):
    """Why a single forwarding attempt failed.

    Attributes:
        STATUS: The origin answered with a status outside 200-299.
        TRANSPORT: No usable answer (DNS, connect, TLS, timeout, redirects).
    """

    STATUS = "STATUS"
    TRANSPORT = "TRANSPORT"


class Forwarded:
    """An origin answered with a successful status.

    Attributes:
        origin: Base URL of the origin that answered.
        response: The origin's response.
    """

    def __init__(self, origin: str, response: ProxyResponse) -> None:
        self.origin = origin
        self.response = response

    def __repr__(self) -> str:
        return f"Forwarded(origin={self.origin!r}, status={self.response.status})"


class UpstreamFailure:
    """A single forwarding attempt failed.

    The failed response, if any, is discarded so that the orchestrator can
    try another origin without leaking it to the client.

    Attributes:
        origin: Base URL of the origin that failed.
        kind: Whether the origin answered badly or could not be reached.
        status_code: Observed status for STATUS failures, None otherwise.
        reason: Short description for logs.
    """

    def __init__(
        self,
        origin: str,
        kind: FailureKind,
        status_code: int | None = None,
        reason: str = "",
    ) -> None:
        self.origin = origin
        self.kind = kind
        self.status_code = status_code
        self.reason = reason

    def __repr__(self) -> str:
        return (
            f"UpstreamFailure(origin={self.origin!r}, kind={self.kind.value}, "
            f"status_code={self.status_code!r})"
        )


class AllOriginsFailed:
    """Every primary origin was tried once and failed.

    Attributes:
        failures: One entry per attempted origin, in attempt order.
    """

    def __init__(self, failures: list[UpstreamFailure]) -> None:
        self.failures = failures

    @property
    def attempted(self) -> list[str]:
        """Origin URLs in the order they were tried."""
        return [failure.origin for failure in self.failures]

    def __repr__(self) -> str:
        return f"AllOriginsFailed(attempted={self.attempted!r})"


ForwardResult = Forwarded | UpstreamFailure
RouteResult = Forwarded | AllOriginsFailed
