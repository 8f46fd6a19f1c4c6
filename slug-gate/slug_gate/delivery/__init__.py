"""
Delivery
========
Web-server handoff strategies and direct streaming with Range support.
"""

from .models import (
    DeliveryMethod,
    ServerSoftware,
    DeliveryPlan,
    ByteRange,
    X_SENDFILE,
    X_LITESPEED_LOCATION,
    X_ACCEL_REDIRECT,
)
from .detection import detect_server_software, resolve_server_software
from .internal_paths import (
    litespeed_internal_path,
    build_litespeed_redirect,
    nginx_internal_path,
)
from .ranges import parse_range_header
from .streaming import (
    GateFileResponse,
    guess_media_type,
    should_inline,
    cache_headers,
    content_disposition,
)
from .dispatcher import DeliveryDispatcher, clear_delivery_headers

__all__ = [
    # Models
    "DeliveryMethod",
    "ServerSoftware",
    "DeliveryPlan",
    "ByteRange",
    "X_SENDFILE",
    "X_LITESPEED_LOCATION",
    "X_ACCEL_REDIRECT",
    # Detection
    "detect_server_software",
    "resolve_server_software",
    # Internal paths
    "litespeed_internal_path",
    "build_litespeed_redirect",
    "nginx_internal_path",
    # Ranges
    "parse_range_header",
    # Streaming
    "GateFileResponse",
    "guess_media_type",
    "should_inline",
    "cache_headers",
    "content_disposition",
    # Dispatcher
    "DeliveryDispatcher",
    "clear_delivery_headers",
]
