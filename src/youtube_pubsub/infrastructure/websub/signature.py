"""Verification of signed hub deliveries."""

from __future__ import annotations

import hashlib
import hmac

_ALGORITHMS = {
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
}


def verify_signature(secret: str, body: bytes, header: str | None) -> bool:
    """
    Check an ``X-Hub-Signature`` header against the raw request body.

    The header has the form ``<algorithm>=<hex digest>``; ``sha1`` and
    ``sha256`` are accepted. A missing or malformed header never verifies.
    """
    if not header or "=" not in header:
        return False

    algorithm, _, signature = header.partition("=")
    digestmod = _ALGORITHMS.get(algorithm.strip().lower())
    if digestmod is None:
        return False

    expected = hmac.new(secret.encode("utf-8"), body, digestmod).hexdigest()
    return hmac.compare_digest(expected, signature.strip().lower())
