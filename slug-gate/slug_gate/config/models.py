"""
Site Configuration Models
=========================
Validated, immutable per-site configuration published for the gate.
"""

import re
from typing import Any, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, field_validator

from ..auth.models import CookiePrefixes
from ..delivery.detection import detect_server_software
from ..delivery.models import DeliveryMethod, ServerSoftware

_TOKEN_SEPARATORS = re.compile(r"[^a-z0-9]+")


def normalize_site_token(value: Any) -> str:
    """Lowercase, collapse non-alphanumerics to ``-`` and trim (``My Site_2`` -> ``my-site-2``)."""
    if value is None:
        return ""
    text = _TOKEN_SEPARATORS.sub("-", str(value).lower())
    return text.strip("-")


class SiteConfig(BaseModel):
    """
    One site's gate configuration.

    An empty ``SiteConfig()`` is the unconfigured value: its empty
    ``media_gate_key`` makes every stage fail closed.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    media_gate_key: str = ""
    upload_base: str = ""
    protected_list_file: str = ""

    site_id: str = ""
    site_slug: str = ""
    site_url: str = ""

    session_cookie_prefix: str = "esp_auth_"
    remember_id_cookie_prefix: str = "esp_remember_id_"
    remember_token_cookie_prefix: str = "esp_remember_token_"
    gate_cookie_prefix: str = "esp_gate_"

    document_root: str = ""
    abs_path: str = ""
    home_path: str = "/"

    delivery_method: DeliveryMethod = DeliveryMethod.AUTO
    server_software: Optional[ServerSoftware] = None
    x_sendfile_available: bool = False

    litespeed_query_key: str = ""
    litespeed_access_key: str = ""
    nginx_internal_prefix: str = "/protected-uploads"
    nginx_variants_prefix: str = ""

    uploads_webpc_base: str = ""

    @field_validator(
        "media_gate_key",
        "upload_base",
        "protected_list_file",
        "site_id",
        "site_slug",
        "site_url",
        "document_root",
        "abs_path",
        "litespeed_query_key",
        "litespeed_access_key",
        "nginx_variants_prefix",
        "uploads_webpc_base",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value):
        # Published blobs may carry numeric ids or nulls
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("home_path", mode="before")
    @classmethod
    def _default_home_path(cls, value):
        return value or "/"

    @field_validator("nginx_internal_prefix", mode="before")
    @classmethod
    def _default_nginx_prefix(cls, value):
        return value or "/protected-uploads"

    @field_validator("delivery_method", mode="before")
    @classmethod
    def _parse_delivery_method(cls, value):
        return DeliveryMethod.parse(value)

    @field_validator("server_software", mode="before")
    @classmethod
    def _parse_server_software(cls, value):
        if value is None or value == "" or isinstance(value, ServerSoftware):
            return value or None
        return detect_server_software(str(value))

    @property
    def site_token(self) -> str:
        """Normalized site identity: slug first, then id."""
        if self.site_slug:
            return normalize_site_token(self.site_slug)
        return normalize_site_token(self.site_id)

    @property
    def site_host(self) -> str:
        if not self.site_url:
            return ""
        return (urlparse(self.site_url).hostname or "").lower()

    @property
    def cookie_prefixes(self) -> CookiePrefixes:
        return CookiePrefixes(
            session=self.session_cookie_prefix,
            remember_id=self.remember_id_cookie_prefix,
            remember_token=self.remember_token_cookie_prefix,
            gate=self.gate_cookie_prefix,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.media_gate_key)
