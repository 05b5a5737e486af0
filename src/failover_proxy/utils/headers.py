"""Header filtering utilities for the failover proxy.

This module provides functions for:
- Dropping body framing headers before a buffered body is re-sent
- Filtering hop-by-hop headers from relayed responses
- Building the header set of synthesized error responses

Headers are handled as ordered lists of (name, value) pairs so repeated
headers such as set-cookie survive the round trip.
"""

# Headers describing how the body was framed on the inbound connection.
# The outbound client recomputes them from the buffered body.
FRAMING_HEADERS = {
    "content-length",
    "transfer-encoding",
}

# Connection-scoped headers that a proxy must not relay (RFC 9110 7.6.1)
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-connection",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
}

CORS_HEADERS = [("access-control-allow-origin", "*")]


def filter_request_headers(headers: list[tuple[str, str]]) -> list[tuple[str, str]]:
    """Return inbound headers to copy onto an outbound request.

    Everything is kept verbatim, Host and Authorization included, except
    the framing headers.

    Example:
        >>> filter_request_headers([("Host", "edge.example"), ("Content-Length", "7")])
        [('Host', 'edge.example')]
    """
    return [(key, value) for key, value in headers if key.lower() not in FRAMING_HEADERS]


def filter_response_headers(
    headers: list[tuple[str, str]],
    additional_hop_by_hop: list[str] | None = None,
) -> list[tuple[str, str]]:
    """Filter hop-by-hop headers from an origin response.

    Header names listed in the origin's own Connection header are removed
    too, as RFC 9110 requires of intermediaries.

    Args:
        headers: Original response headers
        additional_hop_by_hop: Additional header names to remove (case-insensitive)

    Returns:
        Filtered header pairs, order preserved

    Example:
        >>> filter_response_headers([
        ...     ("Content-Type", "application/json"),
        ...     ("Connection", "keep-alive, x-trace"),
        ...     ("X-Trace", "1"),
        ... ])
        [('Content-Type', 'application/json')]
    """
    headers_to_remove = HOP_BY_HOP_HEADERS.copy()

    for key, value in headers:
        if key.lower() == "connection":
            headers_to_remove.update(
                token.strip().lower() for token in value.split(",") if token.strip()
            )

    if additional_hop_by_hop:
        headers_to_remove.update(h.lower() for h in additional_hop_by_hop)

    return [(key, value) for key, value in headers if key.lower() not in headers_to_remove]


def error_headers(content_type: str = "application/json") -> list[tuple[str, str]]:
    """Headers attached to every response the proxy synthesizes itself.

    Example:
        >>> error_headers()
        [('access-control-allow-origin', '*'), ('content-type', 'application/json')]
    """
    return [*CORS_HEADERS, ("content-type", content_type)]
