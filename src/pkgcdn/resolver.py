"""
Filesystem package resolver
Maps /<name>@<version>/<path> onto <packages_dir>/<name>@<version>/<path>; packages are extracted beforehand
"""
import asyncio
import json
import logging
import os
import posixpath
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from pkgcdn.errors import NotFoundError
from pkgcdn.models import FileStats, PackageInfo, ResolvedRequest

logger = logging.getLogger(__name__)

PACKAGE_URL_FORMAT = re.compile(r"^/?((?:@[^/@]+/)?[^/@]+)(?:@([^/]+))?(/.*)?$")


@dataclass(frozen=True)
class PackageURL:
    package_name: str
    package_version: Optional[str]
    filename: str

    @property
    def package_spec(self) -> str:
        return f"{self.package_name}@{self.package_version}"


def parse_package_url(url: str) -> Optional[PackageURL]:
    """
    Split /@scope/name@1.0.0/lib/index.js into its parts

    Returns:
        PackageURL, or None when url does not name a package
    """
    match = PACKAGE_URL_FORMAT.match(url)
    if match is None:
        return None

    name, version, filename = match.groups()
    filename = posixpath.normpath(filename or "/")
    if filename.startswith("//"):
        filename = "/" + filename.lstrip("/")
    return PackageURL(package_name=name, package_version=version, filename=filename)


def _version_key(version: str):
    """Numeric parts compare as numbers; pre-release tags sort before the release"""
    main, _, pre = version.partition("-")
    parts = []
    for part in main.split("."):
        parts.append((0, int(part), "") if part.isdigit() else (1, 0, part))
    return parts, (1, "") if not pre else (0, pre)


def list_versions(packages_dir: str, package_name: str) -> List[str]:
    """Versions of package_name extracted under packages_dir, newest first"""
    parent = os.path.join(packages_dir, posixpath.dirname(package_name))
    prefix = posixpath.basename(package_name) + "@"
    try:
        names = os.listdir(parent)
    except OSError:
        return []
    versions = [name[len(prefix):] for name in names if name.startswith(prefix)]
    return sorted(versions, key=_version_key, reverse=True)


def read_package_config(package_dir: str) -> Dict:
    """Parsed package.json of the package; {} if it is missing or broken"""
    try:
        with open(os.path.join(package_dir, "package.json"), encoding="utf-8") as f:
            config = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Cannot read package.json in {package_dir}: {e}")
        return {}
    return config if isinstance(config, dict) else {}


class PackageResolver:
    """
    Resolves request URLs against a directory of extracted packages

    Args:
        packages_dir: Holds one <name>@<version> directory per package version
    """

    def __init__(self, packages_dir: str):
        self.packages_dir = os.path.abspath(packages_dir)

    def _resolve(self, url: str, query: Dict[str, str]) -> ResolvedRequest:
        parsed = parse_package_url(url)
        if parsed is None:
            raise NotFoundError(f"Invalid package URL {url}")
        if not parsed.package_version:
            raise NotFoundError(f"Cannot find package {parsed.package_name}")

        package_dir = os.path.join(self.packages_dir, parsed.package_spec)
        if not os.path.isdir(package_dir):
            raise NotFoundError(f"Cannot find package {parsed.package_spec}")

        label = f"{parsed.package_spec}{parsed.filename}"
        path = os.path.normpath(os.path.join(package_dir, parsed.filename.lstrip("/")))
        if os.path.commonpath([path, package_dir]) != package_dir:
            raise NotFoundError(f"Cannot find {label}")

        try:
            stats = FileStats.from_stat(os.stat(path))
        except OSError:
            raise NotFoundError(f"Cannot find {label}")

        return ResolvedRequest(
            package_spec=parsed.package_spec,
            package_dir=package_dir,
            filename=parsed.filename,
            stats=stats,
            package_config=read_package_config(package_dir),
            package_info=PackageInfo(
                name=parsed.package_name,
                versions=list_versions(self.packages_dir, parsed.package_name),
            ),
            package_version=parsed.package_version,
            meta="meta" in query,
            module="module" in query,
            html="html" in query,
        )

    async def resolve(self, url: str, query: Dict[str, str]) -> ResolvedRequest:
        """
        Locate the package and entry named by url

        Args:
            url: Request path, e.g. /lodash@4.17.21/package.json
            query: Query parameters; meta, module and html are presence flags

        Raises:
            NotFoundError: Unknown package, version or path
        """
        return await asyncio.to_thread(self._resolve, url, query)
