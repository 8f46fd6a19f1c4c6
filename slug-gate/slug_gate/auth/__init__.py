"""
Gate Authentication Module
==========================
Gate-cookie parsing, HMAC verification and minting.
"""

from .models import AuthDecision, DenyReason, CookiePrefixes, GateCookie, AuthResult
from .signature import (
    build_payload,
    compute_gate_mac,
    verify_gate_mac,
    mint_gate_cookie,
    SIGNATURE_ALGORITHM,
)
from .cookies import parse_gate_cookie, extract_gate_cookie, resolve_login_token
from .authorizer import CookieAuthorizer

__all__ = [
    # Models
    "AuthDecision",
    "DenyReason",
    "CookiePrefixes",
    "GateCookie",
    "AuthResult",
    # Signature
    "build_payload",
    "compute_gate_mac",
    "verify_gate_mac",
    "mint_gate_cookie",
    "SIGNATURE_ALGORITHM",
    # Cookies
    "parse_gate_cookie",
    "extract_gate_cookie",
    "resolve_login_token",
    # Authorizer
    "CookieAuthorizer",
]
