"""
Server Environment
==================
Reads the out-of-band values a web server rule hands to the gate.

The invoking rule injects values the client cannot set: either as process
environment (CGI-style, including Apache's ``REDIRECT_`` copies) or as a
trusted header that the proxy overwrites on every request.
"""

import os
from typing import Mapping, Optional

GATE_KEY_ENV = "ESP_MEDIA_GATE_KEY"
SITE_ID_ENV = "ESP_MEDIA_SITE_ID"
SERVER_SOFTWARE_ENV = "SERVER_SOFTWARE"


def trusted_header_name(key: str) -> str:
    """Header carrying ``key`` when forwarded by a proxy (ESP_MEDIA_SITE_ID -> x-esp-media-site-id)."""
    return "x-" + key.lower().replace("_", "-")


def read_server_env(
    key: str,
    headers: Optional[Mapping[str, str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Look up a server-provided value.

    Order: trusted proxy header, ``environ[key]``, ``environ["REDIRECT_" + key]``.

    Returns:
        The first non-empty value, or an empty string
    """
    if headers is not None:
        value = headers.get(trusted_header_name(key))
        if value:
            return value

    if environ is None:
        environ = os.environ

    for name in (key, "REDIRECT_" + key):
        value = environ.get(name)
        if value:
            return value
    return ""


def detect_request_host(headers: Optional[Mapping[str, str]]) -> str:
    """Lowercased request host without port."""
    if not headers:
        return ""
    host = (headers.get("host") or "").strip().lower()
    if host.startswith("["):
        # IPv6 literal, compared bracket-less like urlparse().hostname
        end = host.find("]")
        return host[1:end] if end != -1 else host
    return host.split(":", 1)[0]
