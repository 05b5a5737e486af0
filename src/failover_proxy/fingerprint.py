"""Idempotency keys for webhook payloads.

A key identifies a payload by content alone: the SHA-256 digest of the raw
body bytes, as lowercase hex. Method, path, headers and arrival time do not
take part, so two deliveries with byte-identical bodies always share a key.
"""

import hashlib


def compute_idempotency_key(body: bytes) -> str:
    """Compute the idempotency key of a request body.

    Args:
        body: Raw request body as received, without any decoding.

    Returns:
        Hexadecimal SHA-256 digest (64 lowercase characters).

    Examples:
        >>> compute_idempotency_key(b"")
        'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    """
    return hashlib.sha256(body).hexdigest()
