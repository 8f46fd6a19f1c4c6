"""
Cookie Extraction
=================
Reads the gate cookie and the login proof token for one protection path.
"""

import re
from typing import Mapping, Optional, Tuple

from .models import CookiePrefixes, DenyReason, GateCookie

_MAC_PATTERN = re.compile(r"[0-9a-f]{64}", re.IGNORECASE)
# Unix seconds, bounded to fit a signed 64-bit integer
_EXPIRY_PATTERN = re.compile(r"[0-9]{1,18}")


def parse_gate_cookie(value) -> Optional[GateCookie]:
    """
    Parse a ``<mac>.<expiry>`` cookie value.

    Returns None for anything malformed: wrong part count, empty parts,
    non-digit or overlong expiry, MAC that is not 64 hex characters, or
    expiry <= 0.
    """
    if not isinstance(value, str) or not value:
        return None

    parts = value.split(".", 1)
    if len(parts) != 2:
        return None

    mac, exp = parts
    if not mac or not exp or not _EXPIRY_PATTERN.fullmatch(exp):
        return None
    if not _MAC_PATTERN.fullmatch(mac):
        return None

    expires = int(exp)
    if expires <= 0:
        return None

    return GateCookie(mac=mac.lower(), expires=expires)


def extract_gate_cookie(
    cookies: Mapping[str, str],
    path_id: str,
    prefixes: CookiePrefixes,
) -> Tuple[Optional[GateCookie], Optional[DenyReason]]:
    """Find and parse ``<gate prefix><path id>``."""
    if not prefixes.gate:
        return None, DenyReason.MISSING_GATE_COOKIE

    value = cookies.get(prefixes.gate + path_id)
    if not isinstance(value, str) or value == "":
        return None, DenyReason.MISSING_GATE_COOKIE

    cookie = parse_gate_cookie(value)
    if cookie is None:
        return None, DenyReason.MALFORMED_GATE_COOKIE
    return cookie, None


def resolve_login_token(
    cookies: Mapping[str, str],
    path_id: str,
    prefixes: CookiePrefixes,
) -> Tuple[Optional[str], Optional[DenyReason]]:
    """
    Pick the proof token for a path.

    The session cookie wins. A remember-me token counts only together with
    its non-empty remember-id cookie; a lone token is discarded.
    """
    if prefixes.session:
        session = cookies.get(prefixes.session + path_id)
        if session:
            return str(session), None

    if prefixes.remember_token:
        token = cookies.get(prefixes.remember_token + path_id)
        if token:
            if prefixes.remember_id:
                remember_id = cookies.get(prefixes.remember_id + path_id)
                if not remember_id:
                    return None, DenyReason.ORPHAN_REMEMBER_TOKEN
            return str(token), None

    return None, DenyReason.MISSING_PROOF_TOKEN
