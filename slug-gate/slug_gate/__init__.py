"""
slug-gate
=========
Fast media gate: authorizes requests for uploaded files and hands delivery
off to the web server (or streams it directly).

Usage:
    from slug_gate import create_app

    app = create_app()
"""

__version__ = "1.0.0"

from .errors import (
    GateError,
    BadRequestError,
    ForbiddenError,
    ProtectedMapError,
    NotFoundError,
    RangeNotSatisfiableError,
    MisconfiguredError,
)
from .config import GateSettings, SiteConfig, load_config_for_site
from .context import DeliveryContext
from .auth import CookieAuthorizer, mint_gate_cookie
from .delivery import DeliveryDispatcher, DeliveryMethod, ServerSoftware
from .guard import GateGuardMiddleware, verify_gate_key
from .pipeline import MediaGate
from .writer import publish_site_config, publish_protected_map
from .app import create_app

__all__ = [
    "__version__",
    # Errors
    "GateError",
    "BadRequestError",
    "ForbiddenError",
    "ProtectedMapError",
    "NotFoundError",
    "RangeNotSatisfiableError",
    "MisconfiguredError",
    # Configuration
    "GateSettings",
    "SiteConfig",
    "load_config_for_site",
    # Pipeline
    "DeliveryContext",
    "MediaGate",
    "GateGuardMiddleware",
    "verify_gate_key",
    # Auth
    "CookieAuthorizer",
    "mint_gate_cookie",
    # Delivery
    "DeliveryDispatcher",
    "DeliveryMethod",
    "ServerSoftware",
    # Producer helpers
    "publish_site_config",
    "publish_protected_map",
    # Application
    "create_app",
]
