"""
Config Resolver
===============
Finds the site configuration for a request in a multi-site deployment.
"""

import glob
import json
import os
from typing import List, Optional

import structlog
from pydantic import ValidationError

from .models import SiteConfig, normalize_site_token

logger = structlog.get_logger(__name__)

DEFAULT_CONFIG_NAME = "config.json"
SITE_CONFIG_TEMPLATE = "config-{token}.json"


def collect_config_candidates(config_dir: str, site_token: str = "") -> List[str]:
    """
    Ordered candidate config files.

    Token-specific file first, then the generic default, then (only when no
    token was supplied) every site-specific file in sorted order.
    """
    candidates = []
    if site_token:
        candidates.append(os.path.join(config_dir, SITE_CONFIG_TEMPLATE.format(token=site_token)))

    candidates.append(os.path.join(config_dir, DEFAULT_CONFIG_NAME))

    if not site_token:
        for path in sorted(glob.glob(os.path.join(glob.escape(config_dir), "config-*.json"))):
            if path not in candidates:
                candidates.append(path)

    return candidates


def load_site_config(path: str) -> Optional[SiteConfig]:
    """Load and validate one config blob; None when it cannot be used."""
    if not path or not os.path.isfile(path):
        return None

    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("site_config_unreadable", path=path, error=str(e))
        return None

    if not isinstance(data, dict):
        logger.warning("site_config_invalid", path=path, reason="not_an_object")
        return None

    try:
        return SiteConfig.model_validate(data)
    except ValidationError as e:
        logger.warning("site_config_invalid", path=path, errors=e.error_count())
        return None


def config_matches_token(config: SiteConfig, site_token: str) -> bool:
    """True when the config's slug (or id) normalizes to ``site_token``."""
    config_token = config.site_token
    if not config_token:
        return False
    return config_token == site_token


def config_matches_host(config: SiteConfig, host: str) -> bool:
    """True when the host of the config's ``site_url`` equals ``host``."""
    if not host:
        return False
    site_host = config.site_host
    return bool(site_host) and site_host == host.lower()


def load_config_for_site(
    config_dir: str,
    site_token: str = "",
    host: str = "",
) -> SiteConfig:
    """
    Resolve the configuration for this request.

    Args:
        config_dir: Directory holding published config blobs
        site_token: Site identifier from the server rule (normalized here)
        host: Request host, consulted only when no token is given

    Returns:
        The explicitly matching config, else the first loadable one, else an
        empty (fail-closed) SiteConfig
    """
    site_token = normalize_site_token(site_token)
    if site_token:
        host = ""

    fallback = None
    for path in collect_config_candidates(config_dir, site_token):
        config = load_site_config(path)
        if config is None:
            continue

        if site_token and config_matches_token(config, site_token):
            logger.debug("site_config_matched", path=path, match="token")
            return config

        if not site_token and config_matches_host(config, host):
            logger.debug("site_config_matched", path=path, match="host")
            return config

        if fallback is None:
            fallback = config
            logger.debug("site_config_fallback", path=path)

    if fallback is None:
        logger.warning("site_config_missing", config_dir=config_dir, site_token=site_token or None)
        return SiteConfig()

    return fallback
