"""
HTML rendering with Jinja2
Templates live in pkgcdn/templates and always autoescape
"""
from datetime import datetime, timezone

import jinja2

from pkgcdn.utils.content_type import get_file_content_type

HIGHLIGHT_STYLE = "default"


def format_bytes(size: int) -> str:
    """Human readable size, e.g. 1.5 kB"""
    if size < 1000:
        return f"{size} B"
    for unit in ("kB", "MB", "GB", "TB"):
        size /= 1000
        if size < 1000 or unit == "TB":
            return f"{size:.1f} {unit}"


def format_mtime(mtime: float) -> str:
    return datetime.fromtimestamp(mtime, tz=timezone.utc).strftime("%b %d, %Y, %I:%M %p")


_env = jinja2.Environment(
    loader=jinja2.PackageLoader("pkgcdn", "templates"),
    autoescape=True,
    undefined=jinja2.StrictUndefined,
)
_env.filters["bytes"] = format_bytes
_env.filters["mtime"] = format_mtime
_env.filters["content_type"] = get_file_content_type


def render_page(template_name: str, **context) -> str:
    """Render one of the bundled templates with explicit context only"""
    return _env.get_template(template_name).render(**context)


def render_code_page(code: str, title: str) -> str:
    """Source text wrapped in a highlight.js page"""
    return render_page("code.html", code=code, title=title, highlight_style=HIGHLIGHT_STYLE)
