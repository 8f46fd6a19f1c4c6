"""
Delivery Dispatcher
===================
Chooses how a granted file reaches the client and builds the response.

Handoff strategies (Apache X-Sendfile, LiteSpeed X-LiteSpeed-Location, Nginx
X-Accel-Redirect) only set one header and let the web server transfer the
file. Direct streaming is the universal fallback.
"""

import os
from typing import TYPE_CHECKING, Optional

import structlog
from starlette.datastructures import MutableHeaders
from starlette.responses import Response

from ..context import DeliveryContext
from ..errors import MisconfiguredError, NotFoundError
from .detection import resolve_server_software
from .internal_paths import (
    build_litespeed_redirect,
    litespeed_internal_path,
    nginx_internal_path,
)
from .models import (
    DeliveryMethod,
    DeliveryPlan,
    ServerSoftware,
    X_ACCEL_REDIRECT,
    X_LITESPEED_LOCATION,
    X_SENDFILE,
)
from .ranges import parse_range_header
from .streaming import DEFAULT_CHUNK_SIZE, GateFileResponse

if TYPE_CHECKING:
    from ..config.models import SiteConfig

logger = structlog.get_logger(__name__)

# Headers that would conflict with a web-server handoff
CONFLICTING_HEADERS = (
    "Content-Type",
    "Content-Length",
    "Content-Encoding",
    "Content-Range",
    "Accept-Ranges",
    "Content-Disposition",
    "Cache-Control",
    "Expires",
    "Pragma",
    "Last-Modified",
    "ETag",
)


def clear_delivery_headers(headers: MutableHeaders) -> None:
    for name in CONFLICTING_HEADERS:
        if name in headers:
            del headers[name]


def header_safe(value: str) -> str:
    """Pass UTF-8 paths through Starlette's latin-1 header encoding byte-for-byte."""
    return value.encode("utf-8").decode("latin-1")


class DeliveryDispatcher:
    """
    Delivery strategy selection for one request.

    A forced method that cannot be carried out is a misconfiguration (500);
    auto-detection instead falls through to the next candidate and ends at
    direct streaming.
    """

    def __init__(
        self,
        config: "SiteConfig",
        server_software: Optional[ServerSoftware] = None,
        software_banner: str = "",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.config = config
        self.server = resolve_server_software(
            server_software or config.server_software,
            software_banner,
        )
        self.chunk_size = chunk_size

    # ------------------------------------------------------------------
    # Strategy candidates
    # ------------------------------------------------------------------

    def _apache_plan(self, context: DeliveryContext) -> DeliveryPlan:
        return DeliveryPlan(
            method=DeliveryMethod.APACHE,
            header_name=X_SENDFILE,
            header_value=context.delivery_path,
            content_type=context.delivery_content_type,
        )

    def _litespeed_plan(self, context: DeliveryContext) -> Optional[DeliveryPlan]:
        config = self.config
        if not config.litespeed_access_key or not config.litespeed_query_key:
            return None

        internal_path = litespeed_internal_path(
            context.delivery_path,
            document_root=config.document_root,
            abs_path=config.abs_path,
            home_path=config.home_path,
        )
        redirect = build_litespeed_redirect(
            internal_path,
            config.litespeed_query_key,
            config.litespeed_access_key,
        )
        if not redirect:
            return None

        return DeliveryPlan(
            method=DeliveryMethod.LITESPEED,
            header_name=X_LITESPEED_LOCATION,
            header_value=redirect,
            content_type=context.delivery_content_type,
        )

    def _nginx_plan(self, context: DeliveryContext) -> Optional[DeliveryPlan]:
        config = self.config
        prefix = config.nginx_internal_prefix
        relative = context.delivery_relative
        content_type = context.delivery_content_type

        if context.is_variant:
            if config.nginx_variants_prefix:
                prefix = config.nginx_variants_prefix
            else:
                # Variant root is not exposed to nginx; hand off the original
                relative = context.requested_relative
                content_type = None

        internal_path = nginx_internal_path(relative, prefix)
        if not internal_path:
            return None

        return DeliveryPlan(
            method=DeliveryMethod.NGINX,
            header_name=X_ACCEL_REDIRECT,
            header_value=internal_path,
            content_type=content_type,
        )

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _forced_plan(self, method: DeliveryMethod, context: DeliveryContext) -> DeliveryPlan:
        if method is DeliveryMethod.APACHE:
            return self._apache_plan(context)

        if method is DeliveryMethod.LITESPEED:
            plan = self._litespeed_plan(context)
            if plan is None:
                logger.error("delivery_misconfigured", method=method.value)
                raise MisconfiguredError("litespeed internal path unavailable")
            return plan

        if method is DeliveryMethod.NGINX:
            plan = self._nginx_plan(context)
            if plan is None:
                logger.error("delivery_misconfigured", method=method.value)
                raise MisconfiguredError("nginx internal path unavailable")
            return plan

        return DeliveryPlan(method=DeliveryMethod.DIRECT)

    def _auto_plan(self, context: DeliveryContext) -> DeliveryPlan:
        if self.server is ServerSoftware.APACHE and self.config.x_sendfile_available:
            return self._apache_plan(context)

        if self.server is ServerSoftware.LITESPEED:
            plan = self._litespeed_plan(context)
            if plan is not None:
                return plan

        if self.server is ServerSoftware.NGINX:
            plan = self._nginx_plan(context)
            if plan is not None:
                return plan

        return DeliveryPlan(method=DeliveryMethod.DIRECT)

    def plan(self, context: DeliveryContext) -> DeliveryPlan:
        """
        Pick the delivery strategy for a granted request.

        Raises:
            MisconfiguredError: A forced handoff lacks what it needs
        """
        method = self.config.delivery_method
        if method is DeliveryMethod.AUTO:
            return self._auto_plan(context)
        return self._forced_plan(method, context)

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def handoff_response(self, plan: DeliveryPlan) -> Response:
        """Bodiless 200 carrying exactly one delivery header."""
        response = Response(status_code=200)
        clear_delivery_headers(response.headers)
        if plan.content_type:
            response.headers["Content-Type"] = plan.content_type
        response.headers[plan.header_name] = header_safe(plan.header_value)
        return response

    def stream_response(
        self,
        context: DeliveryContext,
        range_header: Optional[str] = None,
        send_body: bool = True,
    ) -> Response:
        """
        Stream the file from this process.

        Raises:
            NotFoundError: The file vanished after authorization
            RangeNotSatisfiableError: Malformed or unsatisfiable Range
        """
        try:
            file_size = os.stat(context.delivery_path).st_size
        except OSError as e:
            logger.error("delivery_file_vanished", path=context.delivery_path, error=str(e))
            raise NotFoundError("file disappeared before delivery") from e

        byte_range = None
        if range_header:
            byte_range = parse_range_header(range_header, file_size)

        return GateFileResponse(
            context.delivery_path,
            file_size=file_size,
            media_type=context.delivery_content_type,
            byte_range=byte_range,
            chunk_size=self.chunk_size,
            send_body=send_body,
        )

    def respond(
        self,
        context: DeliveryContext,
        range_header: Optional[str] = None,
        send_body: bool = True,
    ) -> Response:
        plan = self.plan(context)
        if plan.is_handoff:
            logger.info(
                "delivery_handoff",
                method=plan.method.value,
                protected=context.protected,
                path_id=context.path_id,
            )
            return self.handoff_response(plan)

        logger.info(
            "delivery_stream",
            protected=context.protected,
            path_id=context.path_id,
            ranged=bool(range_header),
        )
        return self.stream_response(context, range_header, send_body)
