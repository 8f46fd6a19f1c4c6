"""
Gate Guard
==========
Blocks every request that did not arrive through the web server's gate rule.

The rule injects ``ESP_MEDIA_GATE_KEY`` (environment or trusted header). A
request without it never reaches configuration or file-system code. Once the
site config is known, the marker must also equal the configured key.

Usage:
    from slug_gate.guard import GateGuardMiddleware

    app.add_middleware(GateGuardMiddleware, environ=os.environ)
"""

import hmac
from typing import Mapping, Optional

import structlog
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send

from .config.models import SiteConfig, normalize_site_token
from .environment import GATE_KEY_ENV, read_server_env
from .errors import ForbiddenError

logger = structlog.get_logger(__name__)


class GateGuardMiddleware:
    """
    Fail-closed entry check.

    Pure ASGI so it can answer before the routed endpoint does any work.
    Non-HTTP scopes pass through untouched.
    """

    def __init__(self, app: ASGIApp, environ: Optional[Mapping[str, str]] = None):
        self.app = app
        self.environ = environ

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        if not read_server_env(GATE_KEY_ENV, headers, self.environ):
            logger.warning(
                "gate_guard_blocked",
                path=scope.get("path", ""),
                method=scope.get("method", ""),
                reason="missing_marker",
            )
            await send({
                "type": "http.response.start",
                "status": 403,
                "headers": [(b"content-length", b"0")],
            })
            await send({"type": "http.response.body", "body": b""})
            return

        await self.app(scope, receive, send)


def verify_gate_key(marker: str, config: SiteConfig, site_token: str = "") -> None:
    """
    Check the marker against the resolved config.

    Args:
        marker: ``ESP_MEDIA_GATE_KEY`` as seen by this request
        config: Resolved site configuration
        site_token: ``ESP_MEDIA_SITE_ID`` as seen by this request

    Raises:
        ForbiddenError: Empty config key, key mismatch, or site mismatch
    """
    if not config.media_gate_key:
        logger.warning("gate_guard_blocked", reason="unconfigured_site")
        raise ForbiddenError("site has no gate key")

    if not marker or not hmac.compare_digest(
        marker.encode("utf-8"), config.media_gate_key.encode("utf-8")
    ):
        logger.warning("gate_guard_blocked", reason="invalid_marker")
        raise ForbiddenError("gate key mismatch")

    requested = normalize_site_token(site_token)
    if requested and config.site_token and requested != config.site_token:
        logger.warning(
            "gate_guard_blocked",
            reason="site_mismatch",
            requested_site=requested,
            config_site=config.site_token,
        )
        raise ForbiddenError("site mismatch")
