"""
Recursive metadata for a file or directory inside a package
"""
import asyncio
import base64
import hashlib
import logging
import os
import posixpath
from datetime import datetime, timezone
from typing import List, Optional

from pkgcdn.models import DirectoryNode, FileNode, FileStats, MetadataNode
from pkgcdn.utils.content_type import get_file_content_type
from pkgcdn.utils.entries import is_utf8_name

logger = logging.getLogger(__name__)

READ_CHUNK = 65536


def format_time(mtime: float) -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. 2021-02-20T15:42:16.891Z"""
    dt = datetime.fromtimestamp(mtime, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def get_integrity(file: str) -> str:
    """Subresource integrity string (sha384) of the file's bytes"""
    digest = hashlib.sha384()
    with open(file, "rb") as f:
        for chunk in iter(lambda: f.read(READ_CHUNK), b""):
            digest.update(chunk)
    return "sha384-" + base64.b64encode(digest.digest()).decode("ascii")


async def _stat(path: str) -> FileStats:
    st = await asyncio.to_thread(os.stat, path)
    return FileStats.from_stat(st)


async def _get_file_metadata(base_dir: str, filename: str, stats: FileStats) -> FileNode:
    integrity = await asyncio.to_thread(get_integrity, _join(base_dir, filename))
    return FileNode(
        path=filename,
        contentType=get_file_content_type(filename),
        size=stats.size,
        lastModified=format_time(stats.mtime),
        integrity=integrity,
    )


async def _get_child_metadata(
    base_dir: str, filename: str, depth: int, maximum_depth: int
) -> Optional[MetadataNode]:
    """A child that cannot be stat'ed or read is skipped, not fatal"""
    try:
        stats = await _stat(_join(base_dir, filename))
        return await _get_metadata(base_dir, filename, stats, depth, maximum_depth)
    except OSError as e:
        logger.warning(f"Skipping {filename} in metadata: {e}")
        return None


async def _get_metadata(
    base_dir: str, filename: str, stats: FileStats, depth: int, maximum_depth: int
) -> Optional[MetadataNode]:
    if stats.is_file:
        return await _get_file_metadata(base_dir, filename, stats)

    if not stats.is_directory:
        # sockets, fifos and the like have nothing to describe
        return None

    node = DirectoryNode(path=filename)
    if depth >= maximum_depth:
        return node

    names = await asyncio.to_thread(os.listdir, _join(base_dir, filename))
    skipped = [name for name in names if not is_utf8_name(name)]
    if skipped:
        logger.warning(f"Skipping {skipped!r} in metadata for {filename}: names are not valid UTF-8")
        names = [name for name in names if is_utf8_name(name)]
    children = await asyncio.gather(*[
        _get_child_metadata(base_dir, posixpath.join(filename, name), depth + 1, maximum_depth)
        for name in names
    ])
    node.files = [child for child in children if child is not None]
    return node


async def get_metadata(
    base_dir: str, filename: str, stats: FileStats, maximum_depth: int
) -> MetadataNode:
    """
    Build the metadata tree for filename (relative to base_dir)

    Args:
        base_dir: Package directory on disk
        filename: Path inside the package, starting with "/"
        stats: Stats of filename, already known to the caller
        maximum_depth: Directories at this depth are listed without files

    Returns:
        FileNode or DirectoryNode; siblings keep filesystem enumeration order

    Raises:
        OSError: The root entry itself could not be read
    """
    node = await _get_metadata(base_dir, filename, stats, 0, maximum_depth)
    if node is None:
        raise OSError(f"{filename} is neither a file nor a directory")
    return node


def _join(base_dir: str, filename: str) -> str:
    return os.path.join(base_dir, filename.lstrip("/"))
