"""
Request Normalizer
==================
Turns the raw ``file`` parameter into a safe relative path and a real file
beneath the upload root.

Two layers: segments are filtered at the string level (``..`` is dropped,
never resolved), then the joined path is canonicalized on disk and must stay
inside the canonical upload root.
"""

import os
import re
from typing import Tuple
from urllib.parse import unquote

import structlog

from .errors import BadRequestError, NotFoundError

logger = structlog.get_logger(__name__)

MAX_DECODE_PASSES = 3
_BACKSLASHES = re.compile(r"\\+")


def decode_request_path(raw) -> str:
    """Strip NUL bytes and percent-decode until stable (at most three passes)."""
    request = raw if isinstance(raw, str) else ""
    request = request.replace("\0", "")

    for _ in range(MAX_DECODE_PASSES):
        decoded = unquote(request)
        if decoded == request:
            break
        request = decoded

    # A decoded %00 must not survive either
    return request.replace("\0", "")


def normalize_relative_path(raw) -> str:
    """
    Normalize a requested path to ``a/b/c.ext``.

    Raises:
        BadRequestError: When nothing usable remains
    """
    request = decode_request_path(raw).lstrip("/")
    if not request:
        raise BadRequestError("empty file parameter")

    request = _BACKSLASHES.sub("/", request)
    segments = [s for s in request.split("/") if s not in ("", ".", "..")]
    relative = "/".join(segments)
    if not relative:
        raise BadRequestError("file parameter has no path segments")
    return relative


def _is_within(path: str, root: str) -> bool:
    if path == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return path.startswith(prefix)


def resolve_upload_file(upload_base: str, relative: str) -> str:
    """
    Canonical absolute path of ``relative`` under ``upload_base``.

    Raises:
        NotFoundError: Outside the root, missing, or not a regular file
    """
    if not upload_base:
        raise NotFoundError("upload base not configured")

    base_real = os.path.realpath(upload_base)
    if not os.path.isdir(base_real):
        raise NotFoundError("upload base missing")

    candidate = os.path.join(upload_base, relative.replace("/", os.sep))
    resolved = os.path.realpath(candidate)

    if not _is_within(resolved, base_real):
        logger.warning("request_path_escaped_root", relative=relative)
        raise NotFoundError("outside upload base")

    if not os.path.isfile(resolved):
        raise NotFoundError("not a regular file")

    return resolved


def normalize_request(raw, upload_base: str) -> Tuple[str, str]:
    """Normalize then resolve; returns ``(absolute_path, relative_path)``."""
    relative = normalize_relative_path(raw)
    return resolve_upload_file(upload_base, relative), relative
