"""
Protection Lookup
=================
Loads the published protected-file map and answers "which protection path
owns this file?".

A map that is missing, unreadable or belongs to another site is a hard
failure: the gate never treats "could not read the map" as "nothing is
protected".
"""

import json
import os
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import urlparse

import structlog

from .config.models import SiteConfig, normalize_site_token
from .errors import ProtectedMapError

logger = structlog.get_logger(__name__)

DEFAULT_MAP_NAME = "protected-files.json"
SITE_MAP_TEMPLATE = "protected-files-{token}.json"


@dataclass(frozen=True)
class ProtectedFileMap:
    """Relative path -> protection-path id, plus optional tenant identity."""
    items: Dict[str, str] = field(default_factory=dict)
    site_id: str = ""
    site_slug: str = ""
    site_url: str = ""

    def lookup(self, relative_path: str) -> Optional[str]:
        """Exact-match lookup; None means not protected."""
        path_id = self.items.get(relative_path)
        if path_id is None or path_id == "":
            return None
        return path_id

    @property
    def site_token(self) -> str:
        return normalize_site_token(self.site_slug or self.site_id)

    def conflicts_with(self, config: SiteConfig) -> bool:
        """True when both sides name a site and the names disagree."""
        if self.site_token and config.site_token and self.site_token != config.site_token:
            return True
        map_host = (urlparse(self.site_url).hostname or "").lower() if self.site_url else ""
        if map_host and config.site_host and map_host != config.site_host:
            return True
        return False


def locate_protected_list(config: SiteConfig, config_dir: str) -> str:
    """
    Path of the map for this site.

    Explicit ``protected_list_file`` first, then the site-specific file in the
    config directory when readable, then the shared default.
    """
    if config.protected_list_file:
        return config.protected_list_file

    token = config.site_token
    if token:
        candidate = os.path.join(config_dir, SITE_MAP_TEMPLATE.format(token=token))
        if os.path.isfile(candidate) and os.access(candidate, os.R_OK):
            return candidate

    return os.path.join(config_dir, DEFAULT_MAP_NAME)


def _coerce_items(raw) -> Dict[str, str]:
    if not isinstance(raw, dict):
        raise ProtectedMapError("protected map items must be an object")

    items = {}
    for key, value in raw.items():
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise ProtectedMapError("protected map ids must be strings")
        items[str(key)] = str(value)
    return items


def parse_protected_map(data) -> ProtectedFileMap:
    """Accept either a flat mapping or ``{"items": {...}, "site_id": ...}``."""
    if not isinstance(data, dict):
        raise ProtectedMapError("protected map must be an object")

    if isinstance(data.get("items"), dict):
        meta = {k: data.get(k) for k in ("site_id", "site_slug", "site_url")}
        return ProtectedFileMap(
            items=_coerce_items(data["items"]),
            **{k: "" if v is None else str(v) for k, v in meta.items()},
        )

    return ProtectedFileMap(items=_coerce_items(data))


def load_protected_map(path: str) -> ProtectedFileMap:
    """
    Read the map fresh from disk.

    Raises:
        ProtectedMapError: Missing, unreadable, empty or malformed map
    """
    if not path or not os.path.isfile(path):
        logger.error("protected_map_unreadable", path=path or None, reason="missing")
        raise ProtectedMapError("protected map missing")

    try:
        with open(path, "r", encoding="utf-8") as handle:
            content = handle.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error("protected_map_unreadable", path=path, reason=str(e))
        raise ProtectedMapError("protected map unreadable") from e

    if not content.strip():
        logger.error("protected_map_unreadable", path=path, reason="empty")
        raise ProtectedMapError("protected map empty")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error("protected_map_unreadable", path=path, reason="invalid_json")
        raise ProtectedMapError("protected map is not valid JSON") from e

    try:
        return parse_protected_map(data)
    except ProtectedMapError:
        logger.error("protected_map_unreadable", path=path, reason="invalid_shape")
        raise


def load_map_for_site(config: SiteConfig, config_dir: str) -> ProtectedFileMap:
    """Locate, load and tenant-check the map for ``config``."""
    protected_map = load_protected_map(locate_protected_list(config, config_dir))
    if protected_map.conflicts_with(config):
        logger.error(
            "protected_map_site_mismatch",
            map_site=protected_map.site_token or protected_map.site_url,
            config_site=config.site_token or config.site_url,
        )
        raise ProtectedMapError("protected map belongs to another site")
    return protected_map
