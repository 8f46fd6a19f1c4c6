"""
Internal Paths
==============
Path math for web-server internal redirects.
"""

from typing import Optional
from urllib.parse import quote

DEFAULT_NGINX_PREFIX = "/protected-uploads"


def normalize_path(path: str) -> str:
    return (path or "").replace("\\", "/")


def _strip_root(path: str, root: str) -> Optional[str]:
    root = normalize_path(root).rstrip("/")
    if not root:
        return None
    if path == root:
        return ""
    if path.startswith(root + "/"):
        return path[len(root):]
    return None


def litespeed_internal_path(
    file_path: str,
    document_root: str = "",
    abs_path: str = "",
    home_path: str = "/",
) -> str:
    """
    URL path under which LiteSpeed can re-enter for ``file_path``.

    Strips the document root; failing that, strips the application root and
    re-grounds the rest under ``home_path``.

    Returns:
        The internal path, or "" when neither root contains the file
    """
    normalized = normalize_path(file_path)

    relative = _strip_root(normalized, document_root)
    if relative is not None:
        return "/" + relative.lstrip("/")

    relative = _strip_root(normalized, abs_path)
    if relative is not None:
        base_path = (home_path or "/").rstrip("/")
        return base_path + "/" + relative.lstrip("/")

    return ""


def build_litespeed_redirect(path: str, query_key: str, access_key: str) -> str:
    """Append ``query_key=<access key>`` so LiteSpeed's internal location can check it."""
    if not path or not query_key or not access_key:
        return ""
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{query_key}={quote(access_key, safe='')}"


def nginx_internal_path(relative_path: str, prefix: str = DEFAULT_NGINX_PREFIX) -> str:
    """``/protected-uploads`` + ``/`` + relative path; "" when there is no relative path."""
    relative = normalize_path(relative_path).lstrip("/")
    if not relative:
        return ""
    prefix = (prefix or DEFAULT_NGINX_PREFIX).rstrip("/")
    return f"{prefix}/{relative}"
