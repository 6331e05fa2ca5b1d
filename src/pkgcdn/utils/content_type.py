"""
Content type lookup by file extension
"""
import mimetypes
import posixpath
import re

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Takes precedence over the platform's mimetypes table, which disagrees
# between systems (.js is text/javascript on some, .ts is video/mp2t)
CONTENT_TYPES = {
    ".js": "application/javascript",
    ".mjs": "application/javascript",
    ".cjs": "application/javascript",
    ".jsx": "text/plain",
    ".json": "application/json",
    ".map": "application/json",
    ".ts": "text/plain",
    ".tsx": "text/plain",
    ".flow": "text/plain",
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".txt": "text/plain",
    ".css": "text/css",
    ".html": "text/html",
    ".htm": "text/html",
    ".svg": "image/svg+xml",
    ".wasm": "application/wasm",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
}

# Extensionless names that are plain text in practically every package
TEXT_NAMES = {
    "authors",
    "changes",
    "license",
    "licence",
    "makefile",
    "patents",
    "readme",
}

# .babelrc, .eslintrc, .gitignore, .gitattributes, .npmignore, ...
TEXT_FILES = re.compile(r"/?(\.[a-z]*rc|\.git[a-z]*|\.[a-z]*ignore)$", re.IGNORECASE)


def get_file_content_type(filename: str) -> str:
    """Return the MIME type for filename, application/octet-stream if unknown"""
    if TEXT_FILES.search(filename):
        return "text/plain"

    basename = posixpath.basename(filename)
    root, ext = posixpath.splitext(basename)
    ext = ext.lower()

    if not ext and root.lower() in TEXT_NAMES:
        return "text/plain"

    if ext in CONTENT_TYPES:
        return CONTENT_TYPES[ext]

    content_type, _ = mimetypes.guess_type(basename, strict=False)
    return content_type or DEFAULT_CONTENT_TYPE


def is_javascript(filename: str) -> bool:
    return get_file_content_type(filename) == "application/javascript"
