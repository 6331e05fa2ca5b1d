"""
Bare module specifier rewriting
Turns "lodash/fp" into "<origin>/lodash@^4.0.0/fp?module" using the package's dependencies
"""
import logging
import re
from typing import Dict

logger = logging.getLogger(__name__)

BARE_IDENTIFIER_FORMAT = re.compile(r"^((?:@[^/]+/)?[^/]+)(/.*)?$")
URL_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


def is_absolute_url(value: str) -> bool:
    """http:, https:, data: ... or a protocol-relative //host/path"""
    return bool(URL_SCHEME.match(value)) or value.startswith("//")


def is_bare_identifier(value: str) -> bool:
    return not value.startswith(".") and not value.startswith("/")


def rewrite_specifier(value: str, dependencies: Dict[str, str], origin: str) -> str:
    """
    Rewrite one import specifier

    Args:
        value: The specifier as written in the source
        dependencies: Bare package name -> version range
        origin: CDN origin, e.g. https://unpkg.com

    Returns:
        The rewritten specifier; absolute URLs come back unchanged
    """
    if is_absolute_url(value):
        return value

    if not is_bare_identifier(value):
        # local path
        return f"{value}?module"

    match = BARE_IDENTIFIER_FORMAT.match(value)
    if match is None:
        return value

    package_name = match.group(1)
    file = match.group(2) or ""
    version = dependencies.get(package_name)
    if not version:
        logger.warning(
            f'Missing version info for package "{package_name}" in dependencies; falling back to "latest"'
        )
        version = "latest"

    return f"{origin}/{package_name}@{version}{file}?module"
