"""
Signature Functions
===================
HMAC computation and verification for gate cookies.
"""

import hmac
import hashlib
import time
from typing import Optional

SIGNATURE_ALGORITHM = "sha256"
PAYLOAD_SEPARATOR = "|"


def build_payload(path_id: str, token: str, expires: int) -> str:
    """Canonical payload bound by the gate MAC: ``id|token|expiry``."""
    return f"{path_id}{PAYLOAD_SEPARATOR}{token}{PAYLOAD_SEPARATOR}{expires}"


def compute_gate_mac(secret: str, path_id: str, token: str, expires: int) -> str:
    """
    Compute the HMAC-SHA256 of a gate payload.

    Args:
        secret: Site gate key (``media_gate_key``)
        path_id: Protection-path identifier
        token: Session or remember-me proof token
        expires: Unix expiry embedded in the cookie

    Returns:
        Lowercase hex digest (64 characters)
    """
    return hmac.new(
        secret.encode(),
        build_payload(path_id, token, expires).encode(),
        hashlib.sha256,
    ).hexdigest()


def verify_gate_mac(
    secret: str,
    path_id: str,
    token: str,
    expires: int,
    provided_mac: str,
) -> bool:
    """Constant-time comparison of the recomputed MAC against the cookie's."""
    if not secret:
        return False
    expected = compute_gate_mac(secret, path_id, token, expires)
    return hmac.compare_digest(expected, provided_mac.lower())


def mint_gate_cookie(
    secret: str,
    path_id: str,
    token: str,
    expires: Optional[int] = None,
    ttl_seconds: int = 3600,
) -> str:
    """
    Build a ``<mac>.<expiry>`` gate cookie value.

    Used by the login flow after a successful password check; the gate itself
    never mints cookies.
    """
    if not secret:
        raise ValueError("gate secret must not be empty")
    if expires is None:
        expires = int(time.time()) + ttl_seconds
    return f"{compute_gate_mac(secret, path_id, token, expires)}.{expires}"
