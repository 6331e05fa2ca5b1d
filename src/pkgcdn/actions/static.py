"""
Static file delivery
Raw files are streamed from disk; ?html previews are buffered and wrapped in a highlight.js page
"""
import asyncio
import logging
import posixpath
from email.utils import formatdate
from typing import BinaryIO, Dict, List

from fastapi.responses import HTMLResponse, StreamingResponse

from pkgcdn.errors import ReadError
from pkgcdn.models import CachePolicy, FileStats
from pkgcdn.utils.render import render_code_page

logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK = 65536
ONE_YEAR = 31536000


def file_cache_tags(filename: str) -> List[str]:
    """file, plus e.g. json-file when the name has an extension"""
    tags = ["file"]
    ext = posixpath.splitext(filename)[1][1:]
    if ext:
        tags.append(f"{ext}-file")
    return tags


def file_etag(stats: FileStats) -> str:
    """Strong validator from size and mtime; package files never change in place"""
    return f'"{stats.size:x}-{int(stats.mtime * 1000):x}"'


def last_modified(stats: FileStats) -> str:
    return formatdate(stats.mtime, usegmt=True)


class PackageFileResponse(StreamingResponse):
    """
    Streams an already opened file.

    The handle is closed however the response ends: completed, cancelled
    because the client went away, or failed with a read error.
    """

    def __init__(self, file: BinaryIO, label: str, headers: Dict[str, str], media_type: str):
        self.file = file
        self.label = label
        super().__init__(self._chunks(), headers=headers, media_type=media_type)

    async def _chunks(self):
        while True:
            chunk = await asyncio.to_thread(self.file.read, DOWNLOAD_CHUNK)
            if not chunk:
                break
            yield chunk

    async def __call__(self, scope, receive, send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            # stream_response may never start if the client is already gone
            self.file.close()

    async def stream_response(self, send) -> None:
        try:
            await super().stream_response(send)
        except OSError:
            # Headers are already out; the server drops the connection
            logger.exception(f"Cannot send file {self.label}")
            raise
        finally:
            self.file.close()


async def deliver(file: str, stats: FileStats, content_type: str, as_html: bool, label: str):
    """
    Send one file as-is or as a syntax highlighted HTML page

    Args:
        file: Absolute path on disk
        stats: Stats of file
        content_type: MIME type of file
        as_html: Wrap the text in an HTML page instead of sending raw bytes
        label: package spec + filename, used in messages

    Raises:
        ReadError: The file could not be opened or read
    """
    logger.info(f"Trying to send {label} {'as html page' if as_html else 'as file'}")

    # Cache files for 1 year
    policy = CachePolicy(ONE_YEAR, tuple(file_cache_tags(file)))
    headers = policy.headers()
    headers["Last-Modified"] = last_modified(stats)

    if as_html:
        try:
            data = await asyncio.to_thread(_read_bytes, file)
        except OSError as e:
            logger.error(f"Cannot read file {label}: {e}")
            raise ReadError(f"Cannot send file {label}") from e

        code = data.decode("utf-8", errors="replace")
        return HTMLResponse(render_code_page(code, title=label), headers=headers)

    if content_type == "application/javascript":
        content_type += "; charset=utf-8"

    try:
        handle = await asyncio.to_thread(open, file, "rb")
    except OSError as e:
        logger.error(f"Cannot open file {label}: {e}")
        raise ReadError(f"Cannot send file {label}") from e

    headers["Content-Length"] = str(stats.size)
    headers["ETag"] = file_etag(stats)
    return PackageFileResponse(handle, label, headers=headers, media_type=content_type)


def _read_bytes(file: str) -> bytes:
    with open(file, "rb") as f:
        return f.read()
