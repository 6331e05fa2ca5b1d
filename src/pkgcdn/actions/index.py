"""
HTML directory listings
"""
import logging
from typing import Awaitable, Callable, List

from fastapi.responses import HTMLResponse

from pkgcdn.errors import ReadError
from pkgcdn.models import CachePolicy, Entry, ResolvedRequest
from pkgcdn.utils.render import render_page

logger = logging.getLogger(__name__)

EntryLister = Callable[[str], Awaitable[List[Entry]]]

ONE_MINUTE = 60


async def serve_index(req: ResolvedRequest, get_entries: EntryLister) -> HTMLResponse:
    """
    Render the listing of req's directory

    Raises:
        ReadError: The entry lister failed
    """
    try:
        entries = await get_entries(req.path)
    except Exception as e:
        logger.exception(f"Cannot read entries for {req.label}")
        raise ReadError(f"Cannot read entries for {req.label}") from e

    info = req.package_info
    dir = req.filename if req.filename.endswith("/") else req.filename + "/"
    html = render_page(
        "index.html",
        package_name=info.name if info else req.package_spec.rsplit("@", 1)[0],
        versions=info.versions if info and info.versions else [req.package_version],
        version=req.package_version,
        dir=dir,
        entries=entries,
    )

    # Cache HTML directory listings for 1 minute
    return HTMLResponse(html, headers=CachePolicy(ONE_MINUTE, ("index",)).headers())
