"""
Direct Streaming
================
Streams a file from the gate process itself, with single-range support and
cooperative client-disconnect detection between chunks.
"""

import mimetypes
import os
import time
from email.utils import formatdate
from typing import Dict, Optional
from urllib.parse import quote

import anyio
import structlog
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from .models import ByteRange

logger = structlog.get_logger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_MEDIA_TYPE = "application/octet-stream"

mimetypes.add_type("image/avif", ".avif")
mimetypes.add_type("image/webp", ".webp")

INLINE_TYPES = frozenset({
    "image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp", "image/avif",
    "image/svg+xml", "text/plain", "text/html", "text/css", "application/javascript",
    "text/javascript", "application/pdf", "video/mp4", "audio/mpeg", "audio/mp3",
})

LONG_CACHE_SECONDS = 31536000  # 1 year
SHORT_CACHE_SECONDS = 3600


def guess_media_type(path: str, override: Optional[str] = None) -> str:
    if override:
        return override
    media_type, _ = mimetypes.guess_type(path)
    return media_type or DEFAULT_MEDIA_TYPE


def should_inline(media_type: str) -> bool:
    return media_type in INLINE_TYPES


def content_disposition(media_type: str, filename: str) -> str:
    disposition = "inline" if should_inline(media_type) else "attachment"
    quoted = quote(filename)
    if quoted != filename:
        return f"{disposition}; filename*=utf-8''{quoted}"
    return f'{disposition}; filename="{filename}"'


def cache_headers(media_type: str, now: Optional[float] = None) -> Dict[str, str]:
    """Long public caching for images/CSS/JS, short private caching otherwise."""
    if now is None:
        now = time.time()
    long_lived = (
        media_type.startswith("image/")
        or media_type.startswith("text/css")
        or media_type.startswith("application/javascript")
        or media_type.startswith("text/javascript")
    )
    if long_lived:
        return {
            "Cache-Control": f"public, max-age={LONG_CACHE_SECONDS}",
            "Expires": formatdate(now + LONG_CACHE_SECONDS, usegmt=True),
        }
    return {
        "Cache-Control": f"private, max-age={SHORT_CACHE_SECONDS}",
        "Expires": formatdate(now + SHORT_CACHE_SECONDS, usegmt=True),
    }


class GateFileResponse(Response):
    """
    200/206 file response streamed in bounded chunks.

    Headers are fixed at construction; the body is read in a worker thread
    and the client is polled for disconnect before every chunk.
    """

    def __init__(
        self,
        path: str,
        file_size: int,
        media_type: Optional[str] = None,
        byte_range: Optional[ByteRange] = None,
        filename: Optional[str] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        send_body: bool = True,
    ):
        self.path = path
        self.file_size = file_size
        self.byte_range = byte_range
        self.chunk_size = max(1, chunk_size)
        self.send_body = send_body
        self.media_type = guess_media_type(path, media_type)
        self.status_code = 206 if byte_range is not None else 200
        self.background = None

        headers = {
            "Accept-Ranges": "bytes",
            "Content-Disposition": content_disposition(
                self.media_type, filename or os.path.basename(path)
            ),
        }
        if byte_range is not None:
            headers["Content-Length"] = str(byte_range.length)
            headers["Content-Range"] = byte_range.content_range
        else:
            headers["Content-Length"] = str(file_size)
        headers.update(cache_headers(self.media_type))
        self.init_headers(headers)

    @property
    def start(self) -> int:
        return self.byte_range.start if self.byte_range is not None else 0

    @property
    def length(self) -> int:
        return self.byte_range.length if self.byte_range is not None else self.file_size

    async def _send_chunk(self, send: Send, body: bytes, more_body: bool) -> bool:
        try:
            await send({"type": "http.response.body", "body": body, "more_body": more_body})
        except OSError:
            logger.info("stream_client_disconnected", path=self.path, stage="send")
            return False
        return True

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await send({
            "type": "http.response.start",
            "status": self.status_code,
            "headers": self.raw_headers,
        })

        if not self.send_body or self.length == 0:
            await self._send_chunk(send, b"", False)
            return

        request = Request(scope, receive)
        remaining = self.length
        try:
            async with await anyio.open_file(self.path, mode="rb") as handle:
                await handle.seek(self.start)
                while remaining > 0:
                    if await request.is_disconnected():
                        logger.info(
                            "stream_client_disconnected",
                            path=self.path,
                            sent=self.length - remaining,
                        )
                        return

                    chunk = await handle.read(min(self.chunk_size, remaining))
                    if not chunk:
                        logger.error(
                            "stream_truncated",
                            path=self.path,
                            missing_bytes=remaining,
                        )
                        return

                    remaining -= len(chunk)
                    if not await self._send_chunk(send, chunk, remaining > 0):
                        return
        except OSError as e:
            # Headers already sent: end without the final body message
            logger.error("stream_read_failed", path=self.path, error=str(e))
