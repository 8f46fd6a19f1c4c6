"""
Sanitized Error Middleware
==========================
Turns unhandled exceptions into bodiless 500 responses.
"""

import structlog
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = structlog.get_logger(__name__)


class SanitizedErrorMiddleware:
    """
    Middleware that keeps internal failures from leaking to clients.

    - Logs the exception with request context
    - Answers 500 with an empty body when nothing was sent yet
    - Otherwise ends quietly; the status line is already out
    - In non-production environments re-raises after logging
    """

    def __init__(self, app: ASGIApp, environment: str = "production"):
        self.app = app
        self.is_production = environment.lower() in ("production", "prod", "staging")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            logger.error(
                "unhandled_exception",
                error_type=type(e).__name__,
                error=str(e),
                path=scope.get("path", ""),
                method=scope.get("method", ""),
                response_started=response_started,
            )

            if not self.is_production:
                raise

            if not response_started:
                await send({
                    "type": "http.response.start",
                    "status": 500,
                    "headers": [(b"content-length", b"0")],
                })
                await send({"type": "http.response.body", "body": b""})
