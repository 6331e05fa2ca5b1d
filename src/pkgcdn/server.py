"""
pkgcdn Web service
Serves package files, ES modules, metadata and directory listings
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response

from pkgcdn import __version__
from pkgcdn.actions.serve_file import FileServer
from pkgcdn.config import Settings, get_settings
from pkgcdn.errors import ServeError
from pkgcdn.resolver import PackageResolver

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application

    Args:
        settings: Explicit settings; defaults to the environment via get_settings()
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="pkgcdn",
        description="Package contents over HTTP",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.resolver = PackageResolver(settings.packages_dir)
    app.state.file_server = FileServer(
        auto_index=settings.auto_index,
        origin=settings.origin,
        maximum_depth=settings.maximum_depth,
    )

    @app.get("/")
    async def root():
        """Version info"""
        return {"message": "pkgcdn", "version": __version__}

    @app.get("/{url:path}")
    async def serve_package_file(url: str, request: Request) -> Response:
        """/<name>@<version>/<path>[?meta|?module|?html]"""
        query = dict(request.query_params)
        try:
            req = await app.state.resolver.resolve("/" + url, query)
        except ServeError as e:
            logger.info(f"Cannot resolve /{url}: {e.message}")
            return PlainTextResponse(e.message, status_code=e.status_code)

        # Relative links on index pages need the trailing slash
        if req.stats.is_directory and not req.meta and not url.endswith("/"):
            target = request.url.path + "/"
            if request.url.query:
                target += f"?{request.url.query}"
            return RedirectResponse(target, status_code=302)

        return await app.state.file_server.serve(req)

    return app
