"""
Gate Pipeline
=============
Runs the per-request stages in order and produces a DeliveryContext.

Config Resolver -> key/site verification -> Request Normalizer ->
Protection Lookup -> Cookie Authorizer (protected files only) ->
Variant Resolver. Every stage either passes or raises a GateError.
"""

import time
from typing import Callable, Mapping, Optional, Tuple

import structlog

from .auth import CookieAuthorizer
from .config import SiteConfig, load_config_for_site
from .context import DeliveryContext
from .environment import GATE_KEY_ENV, SITE_ID_ENV, detect_request_host, read_server_env
from .errors import ForbiddenError
from .guard import verify_gate_key
from .normalizer import normalize_request
from .protection import load_map_for_site
from .variants import resolve_media_variant

logger = structlog.get_logger(__name__)


class MediaGate:
    """
    Stateless evaluator for one deployment.

    Nothing is cached between calls: config blobs and the protected map are
    re-read on every request so a fresh publish takes effect immediately.
    """

    def __init__(
        self,
        config_dir: str,
        environ: Optional[Mapping[str, str]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config_dir = config_dir
        self.environ = environ
        self.clock = clock

    def resolve_config(self, headers: Mapping[str, str]) -> Tuple[SiteConfig, str]:
        """Resolved config and the site token the server rule supplied."""
        site_token = read_server_env(SITE_ID_ENV, headers, self.environ)
        config = load_config_for_site(
            self.config_dir,
            site_token=site_token,
            host=detect_request_host(headers),
        )
        return config, site_token

    def evaluate(
        self,
        raw_file,
        headers: Mapping[str, str],
        cookies: Mapping[str, str],
        query_string: str = "",
    ) -> Tuple[SiteConfig, DeliveryContext]:
        """
        Decide what, if anything, this request may receive.

        Args:
            raw_file: Raw ``file`` parameter (query or path-info)
            headers: Request headers (lowercase lookup)
            cookies: Request cookies
            query_string: Raw query string, for ``?original``

        Returns:
            The resolved config and a context describing the file to deliver

        Raises:
            GateError: The first stage that refuses the request
        """
        config, site_token = self.resolve_config(headers)
        verify_gate_key(read_server_env(GATE_KEY_ENV, headers, self.environ), config, site_token)

        absolute_path, relative_path = normalize_request(raw_file, config.upload_base)

        protected_map = load_map_for_site(config, self.config_dir)
        path_id = protected_map.lookup(relative_path)

        authorized = False
        if path_id is not None:
            authorizer = CookieAuthorizer(
                config.media_gate_key,
                prefixes=config.cookie_prefixes,
                clock=self.clock,
            )
            result = authorizer.check(path_id, cookies)
            if not result.allowed:
                raise ForbiddenError("not authorized for protected file")
            authorized = True

        variant = resolve_media_variant(
            absolute_path,
            relative_path,
            variant_base=config.uploads_webpc_base,
            accept=headers.get("accept", ""),
            query_string=query_string,
            document_root=config.document_root,
        )

        context = DeliveryContext(
            requested_path=absolute_path,
            requested_relative=relative_path,
            delivery_path=variant.path,
            delivery_relative=variant.relative,
            delivery_content_type=variant.content_type,
            is_variant=variant.is_variant,
            protected=path_id is not None,
            path_id=path_id,
            authorized=authorized,
        )
        logger.debug(
            "gate_request_granted",
            relative=relative_path,
            protected=context.protected,
            variant=context.is_variant,
        )
        return config, context
