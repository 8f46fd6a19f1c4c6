"""
Server Detection
================
Maps a SERVER_SOFTWARE string onto the closed ServerSoftware enum.
"""

from typing import Optional

from .models import ServerSoftware


def detect_server_software(software: Optional[str]) -> ServerSoftware:
    """Classify a server-software banner (e.g. ``Apache/2.4.58 (Unix)``)."""
    text = (software or "").lower()
    # LiteSpeed first: OpenLiteSpeed banners may mention Apache compatibility
    if "litespeed" in text:
        return ServerSoftware.LITESPEED
    if "nginx" in text:
        return ServerSoftware.NGINX
    if "apache" in text:
        return ServerSoftware.APACHE
    return ServerSoftware.UNKNOWN


def resolve_server_software(
    override: Optional[ServerSoftware],
    software: Optional[str],
) -> ServerSoftware:
    """Configured override wins over detection."""
    if override is not None:
        return override
    return detect_server_software(software)
