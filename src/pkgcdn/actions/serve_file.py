"""
Send the file, JSON metadata, rewritten module, or HTML directory listing
"""
import logging
import re
from typing import Awaitable, Callable, Dict

from fastapi.responses import JSONResponse, PlainTextResponse, Response

from pkgcdn.actions.index import EntryLister, serve_index
from pkgcdn.actions.static import ONE_YEAR, deliver
from pkgcdn.config import DEFAULT_ORIGIN, MAXIMUM_DEPTH
from pkgcdn.errors import NotServableError, ReadError, ServeError, TransformError
from pkgcdn.models import CachePolicy, ResolvedRequest, RewriteResult
from pkgcdn.utils.content_type import get_file_content_type, is_javascript
from pkgcdn.utils.entries import get_entries
from pkgcdn.utils.metadata import get_metadata
from pkgcdn.utils.modules import rewrite_bare_module_identifiers

logger = logging.getLogger(__name__)

ModuleRewriter = Callable[[str, Dict[str, str], str], Awaitable[RewriteResult]]

# Extraction directories of the package fetcher look like /tmp/unpkg-abc123/
TEMP_DIR_PREFIX = re.compile(r"^.*?/unpkg-.+?/")

META_POLICY = CachePolicy(ONE_YEAR, ("meta",))
MODULE_POLICY = CachePolicy(ONE_YEAR, ("file", "js-file", "js-module"))


def sanitize_message(message: str, package_dir: str, package_spec: str) -> str:
    """Replace server-side directories with the logical /<package_spec>/ prefix"""
    package_dir = package_dir.rstrip("/")
    message = message.replace(package_dir + "/", f"/{package_spec}/")
    message = message.replace(package_dir, f"/{package_spec}")
    return TEMP_DIR_PREFIX.sub(f"/{package_spec}/", message)


class FileServer:
    """
    Picks exactly one way to answer a resolved request

    Usage:
        server = FileServer(auto_index=True)
        response = await server.serve(req)
    """

    def __init__(
        self,
        auto_index: bool = True,
        origin: str = DEFAULT_ORIGIN,
        maximum_depth: int = MAXIMUM_DEPTH,
        entry_lister: EntryLister = get_entries,
        module_rewriter: ModuleRewriter = rewrite_bare_module_identifiers,
    ):
        """
        Args:
            auto_index: Generate HTML pages that show directory contents
            origin: CDN origin used in rewritten module specifiers
            maximum_depth: Recursion limit for ?meta listings
            entry_lister: Lists a directory for the index page
            module_rewriter: Rewrites bare specifiers for ?module
        """
        self.auto_index = auto_index
        self.origin = origin.rstrip("/")
        self.maximum_depth = maximum_depth
        self.entry_lister = entry_lister
        self.module_rewriter = module_rewriter

    async def serve(self, req: ResolvedRequest) -> Response:
        try:
            if req.meta:
                logger.info(f"Serving metadata for {req.label}")
                return await self.serve_metadata(req)

            if req.stats.is_file:
                if req.module:
                    logger.info(f"Serving module {req.label}")
                    return await self.serve_javascript_module(req)
                return await self.serve_static_file(req)

            if req.stats.is_directory and self.auto_index:
                logger.info(f"Serving index of {req.label}")
                return await serve_index(req, self.entry_lister)

            logger.info(f"Refusing {req.label}: not a file")
            raise NotServableError(f"Cannot serve {req.label}; it's not a file")
        except ServeError as e:
            return PlainTextResponse(e.message, status_code=e.status_code)
        except Exception:
            logger.exception(f"Unexpected failure serving {req.label}")
            return PlainTextResponse(f"Cannot serve {req.label}", status_code=500)

    async def serve_metadata(self, req: ResolvedRequest) -> Response:
        try:
            metadata = await get_metadata(req.package_dir, req.filename, req.stats, self.maximum_depth)
        except OSError as e:
            logger.exception(f"Cannot generate metadata for {req.label}")
            raise ReadError(f"Cannot generate metadata for {req.label}") from e

        # Cache metadata for 1 year
        return JSONResponse(metadata.model_dump(exclude_none=True), headers=META_POLICY.headers())

    async def serve_javascript_module(self, req: ResolvedRequest) -> Response:
        if not is_javascript(req.filename):
            raise NotServableError(
                f"Cannot serve {req.label} as a module; ?module mode is available only for JavaScript files"
            )

        result = await self.module_rewriter(req.path, req.dependencies(), self.origin)

        if not result.ok:
            error = result.error
            logger.error(f"Cannot generate module for {req.label}: {error.name}: {error.message}")
            message = sanitize_message(error.message, req.package_dir, req.package_spec)
            debug_info = f"{error.name}: {message}\n\n{error.code_frame}"
            raise TransformError(f"Cannot generate module for {req.label}\n\n{debug_info}", error)

        body = result.code.encode("utf-8")
        headers = MODULE_POLICY.headers()
        headers["Content-Length"] = str(len(body))

        # Cache modules for 1 year
        return Response(body, media_type="application/javascript; charset=utf-8", headers=headers)

    async def serve_static_file(self, req: ResolvedRequest) -> Response:
        return await deliver(
            req.path,
            req.stats,
            get_file_content_type(req.filename),
            as_html=req.html,
            label=req.label,
        )
