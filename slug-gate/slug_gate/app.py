"""
Gate Application
================
Starlette application serving ``GET|HEAD /?file=...`` and ``/{file:path}``.

Run behind the web server's gate rule:
    uvicorn --factory slug_gate.app:create_app
"""

import time
from typing import Callable, Mapping, Optional

import structlog
from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route

from .config import GateSettings
from .delivery import DeliveryDispatcher
from .environment import SERVER_SOFTWARE_ENV, read_server_env
from .errors import GateError, RangeNotSatisfiableError
from .guard import GateGuardMiddleware
from .log import RequestLoggingMiddleware, setup_logging
from .middleware import SanitizedErrorMiddleware
from .pipeline import MediaGate

logger = structlog.get_logger(__name__)


def error_response(error: GateError) -> Response:
    """Bare status response; 416 also reports the file size."""
    if isinstance(error, RangeNotSatisfiableError):
        return Response(
            status_code=error.status_code,
            headers={"Content-Range": f"bytes */{error.file_size}"},
        )
    return Response(status_code=error.status_code)


def create_app(
    settings: Optional[GateSettings] = None,
    environ: Optional[Mapping[str, str]] = None,
    clock: Callable[[], float] = time.time,
    configure_logging: bool = True,
) -> Starlette:
    """
    Build the gate application.

    Args:
        settings: Process settings (read from the environment when omitted)
        environ: Server environment for the out-of-band values (``os.environ``
            when omitted)
        clock: Time source for gate-cookie expiry
        configure_logging: Install the JSON/structlog logging setup
    """
    settings = settings or GateSettings.from_env()
    if configure_logging:
        setup_logging(settings.service_name, settings.log_level, settings.json_logs)

    gate = MediaGate(settings.config_dir, environ=environ, clock=clock)

    async def serve(request: Request) -> Response:
        raw_file = request.query_params.get("file")
        if raw_file is None:
            raw_file = request.path_params.get("file", "")

        try:
            config, context = await run_in_threadpool(
                gate.evaluate,
                raw_file,
                request.headers,
                request.cookies,
                request.url.query,
            )
            dispatcher = DeliveryDispatcher(
                config,
                software_banner=read_server_env(SERVER_SOFTWARE_ENV, request.headers, environ),
                chunk_size=settings.chunk_size,
            )
            return await run_in_threadpool(
                dispatcher.respond,
                context,
                request.headers.get("range"),
                request.method != "HEAD",
            )
        except GateError as e:
            logger.info("gate_request_refused", status_code=e.status_code, reason=e.message)
            return error_response(e)

    routes = [
        Route("/", serve, methods=["GET", "HEAD"]),
        Route("/{file:path}", serve, methods=["GET", "HEAD"]),
    ]

    # Outermost first
    middleware = [
        Middleware(RequestLoggingMiddleware),
        Middleware(SanitizedErrorMiddleware, environment=settings.environment),
        Middleware(GateGuardMiddleware, environ=environ),
    ]

    return Starlette(routes=routes, middleware=middleware)
