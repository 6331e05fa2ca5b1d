"""
Immediate children of a directory, for the index page
"""
import asyncio
import logging
import os
from typing import List

from pkgcdn.models import Entry

logger = logging.getLogger(__name__)


def is_utf8_name(name: str) -> bool:
    """False for names os.listdir surrogate-escaped because they are not valid UTF-8"""
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _read_entries(dir: str) -> List[Entry]:
    entries = []
    with os.scandir(dir) as it:
        for item in it:
            if not is_utf8_name(item.name):
                logger.warning(f"Skipping {item.name!r} in {dir}: name is not valid UTF-8")
                continue
            st = item.stat()
            entries.append(Entry(
                name=item.name,
                is_directory=item.is_dir(),
                size=st.st_size,
                mtime=st.st_mtime,
            ))
    entries.sort(key=lambda e: e.name)
    return entries


async def get_entries(dir: str) -> List[Entry]:
    """
    List dir without recursing; names that are not valid UTF-8 are left out

    Raises:
        OSError: dir or one of its children could not be read
    """
    return await asyncio.to_thread(_read_entries, dir)
