"""Utility modules for the failover proxy."""

from .headers import (
    FRAMING_HEADERS,
    HOP_BY_HOP_HEADERS,
    error_headers,
    filter_request_headers,
    filter_response_headers,
)

__all__ = [
    "filter_request_headers",
    "filter_response_headers",
    "error_headers",
    "FRAMING_HEADERS",
    "HOP_BY_HOP_HEADERS",
]
