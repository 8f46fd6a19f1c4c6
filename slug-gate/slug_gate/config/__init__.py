"""
Gate Configuration
==================
Per-site configuration blobs and process settings.
"""

from .models import SiteConfig, normalize_site_token
from .resolver import (
    collect_config_candidates,
    load_site_config,
    config_matches_token,
    config_matches_host,
    load_config_for_site,
)
from .settings import GateSettings

__all__ = [
    # Models
    "SiteConfig",
    "normalize_site_token",
    # Resolver
    "collect_config_candidates",
    "load_site_config",
    "config_matches_token",
    "config_matches_host",
    "load_config_for_site",
    # Settings
    "GateSettings",
]
