"""
Variant Resolver
================
Substitutes a pre-generated AVIF/WebP representation of an image when the
client accepts it. Authorization stays keyed to the original file.
"""

import os
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class VariantFormat:
    mime: str
    suffix: str
    source_extensions: Tuple[str, ...]


# Priority order
VARIANT_FORMATS = (
    VariantFormat("image/avif", ".avif", ("jpg", "jpeg", "png", "webp")),
    VariantFormat("image/webp", ".webp", ("jpg", "jpeg", "png")),
)

_EXTENSION = re.compile(r"\.[^./]+$")

# Fallback variant root under the document root
DOCROOT_VARIANT_DIR = os.path.join("wp-content", "uploads-webpc", "uploads")


@dataclass(frozen=True)
class DeliveryVariant:
    """What to deliver; equals the original when no variant applies."""
    path: str
    relative: str
    content_type: Optional[str] = None
    is_variant: bool = False


def should_skip_variants(query_string: str) -> bool:
    """``?original`` (or any query ending in ``original``) asks for the source file."""
    return bool(query_string) and query_string.endswith("original")


def accepts_mime(accept: str, mime: str) -> bool:
    """True when ``accept`` lists exactly ``mime`` with q > 0."""
    accept = (accept or "").strip().lower()
    mime = (mime or "").strip().lower()
    if not accept or not mime:
        return False

    for item in accept.split(","):
        item = item.strip()
        if not item:
            continue
        segments = item.split(";")
        if segments[0].strip() != mime:
            continue

        quality = 1.0
        for segment in segments[1:]:
            name, sep, value = segment.partition("=")
            if not sep or name.strip() != "q":
                continue
            try:
                quality = float(value.strip())
            except ValueError:
                quality = 0.0

        if quality > 0:
            return True

    return False


def build_variant_relative_path(relative_path: str, extension: str, suffix: str) -> str:
    """``photos/A.JPG`` + ``jpg`` + ``.webp`` -> ``photos/A.jpg.webp``."""
    relative_path = relative_path.replace("\\", "/").strip("/")
    extension = (extension or "").lower()
    if not relative_path or not extension or not suffix:
        return ""

    normalized, count = _EXTENSION.subn("." + extension, relative_path, count=1)
    if count == 0:
        normalized += "." + extension
    return normalized + suffix


def _file_under(root: str, relative: str) -> Optional[str]:
    root_real = os.path.realpath(root)
    candidate = os.path.realpath(os.path.join(root, relative.replace("/", os.sep)))
    if not candidate.startswith(root_real.rstrip(os.sep) + os.sep):
        return None
    if not os.path.isfile(candidate):
        return None
    return candidate


def variant_roots(variant_base: str = "", document_root: str = "") -> List[str]:
    """Variant roots to search, configured base first, without duplicates."""
    roots = []
    if variant_base:
        roots.append(variant_base)
    if document_root:
        roots.append(os.path.join(document_root, DOCROOT_VARIANT_DIR))

    unique = []
    seen = set()
    for root in roots:
        key = os.path.realpath(root)
        if key not in seen:
            seen.add(key)
            unique.append(root)
    return unique


def resolve_media_variant(
    absolute_path: str,
    relative_path: str,
    variant_base: str = "",
    accept: str = "",
    query_string: str = "",
    document_root: str = "",
) -> DeliveryVariant:
    """
    Pick the delivery representation for a granted file.

    Args:
        absolute_path: Canonical path of the requested file
        relative_path: Normalized relative path of the requested file
        variant_base: Root holding generated variants (``uploads_webpc_base``)
        accept: Client Accept header
        query_string: Raw request query string
        document_root: Site document root; its ``wp-content/uploads-webpc/uploads``
            directory is searched after ``variant_base``

    Returns:
        DeliveryVariant for the best accepted variant on disk, else the original
    """
    original = DeliveryVariant(path=absolute_path, relative=relative_path)
    roots = variant_roots(variant_base, document_root)

    if not absolute_path or not roots or not accept:
        return original
    if should_skip_variants(query_string):
        return original

    extension = os.path.splitext(absolute_path)[1].lstrip(".").lower()
    if not extension:
        return original

    for fmt in VARIANT_FORMATS:
        if extension not in fmt.source_extensions:
            continue
        if not accepts_mime(accept, fmt.mime):
            continue

        variant_relative = build_variant_relative_path(relative_path, extension, fmt.suffix)
        if not variant_relative:
            continue

        variant_path = None
        for root in roots:
            variant_path = _file_under(root, variant_relative)
            if variant_path is not None:
                break
        if variant_path is None:
            continue

        logger.debug("media_variant_selected", relative=relative_path, mime=fmt.mime)
        return DeliveryVariant(
            path=variant_path,
            relative=variant_relative,
            content_type=fmt.mime,
            is_variant=True,
        )

    return original
