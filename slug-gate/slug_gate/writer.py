"""
Config Writer
=============
Producer-side helpers that publish config blobs and protected maps for the
gate. Writes are atomic: readers see the old file or the new one, never a
partial write.
"""

import json
import os
import tempfile
from typing import Any, Dict, Mapping, Optional, Union

import structlog

from .config.models import SiteConfig, normalize_site_token
from .config.resolver import DEFAULT_CONFIG_NAME, SITE_CONFIG_TEMPLATE

logger = structlog.get_logger(__name__)


def atomic_write_json(path: str, data: Any) -> str:
    """Write ``data`` as JSON via a same-directory temp file and ``os.replace``."""
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=2, sort_keys=True)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    return path


def publish_site_config(
    config_dir: str,
    config: Union[SiteConfig, Mapping[str, Any]],
    site_token: Optional[str] = None,
) -> str:
    """
    Publish a site config blob.

    Args:
        config_dir: Directory the gate reads configs from
        config: SiteConfig or plain mapping (validated before writing)
        site_token: Target ``config-<token>.json``; None derives it from the
            config, "" writes the generic ``config.json``

    Returns:
        Path written
    """
    if not isinstance(config, SiteConfig):
        config = SiteConfig.model_validate(dict(config))

    token = config.site_token if site_token is None else normalize_site_token(site_token)
    name = SITE_CONFIG_TEMPLATE.format(token=token) if token else DEFAULT_CONFIG_NAME
    path = os.path.join(config_dir, name)

    atomic_write_json(path, config.model_dump(mode="json", exclude_none=True))
    logger.info("site_config_published", path=path, site=token or None)
    return path


def publish_protected_map(
    path: str,
    items: Mapping[str, Any],
    site_id: str = "",
    site_slug: str = "",
    site_url: str = "",
) -> str:
    """Publish the protected-file map in the ``{"items": ...}`` shape."""
    data: Dict[str, Any] = {"items": {str(k): str(v) for k, v in items.items()}}
    for key, value in (("site_id", site_id), ("site_slug", site_slug), ("site_url", site_url)):
        if value:
            data[key] = str(value)

    atomic_write_json(path, data)
    logger.info("protected_map_published", path=path, entries=len(data["items"]))
    return path
