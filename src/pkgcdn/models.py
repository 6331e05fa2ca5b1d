"""
Data classes shared by the resolver, the dispatcher and the delivery actions
"""
from __future__ import annotations

import os
import stat as _stat
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel


@dataclass(frozen=True)
class FileStats:
    """The parts of os.stat_result the actions care about"""
    is_file: bool
    is_directory: bool
    size: int
    mtime: float

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "FileStats":
        return cls(
            is_file=_stat.S_ISREG(st.st_mode),
            is_directory=_stat.S_ISDIR(st.st_mode),
            size=st.st_size,
            mtime=st.st_mtime,
        )


@dataclass(frozen=True)
class PackageInfo:
    """Package name plus the versions available next to the requested one"""
    name: str
    versions: List[str] = field(default_factory=list)


def merge_dependencies(package_config: Dict[str, Any]) -> Dict[str, str]:
    """peerDependencies merged with dependencies; dependencies win"""
    merged: Dict[str, str] = {}
    merged.update(package_config.get("peerDependencies") or {})
    merged.update(package_config.get("dependencies") or {})
    return merged


@dataclass(frozen=True)
class ResolvedRequest:
    """
    A request after the resolver located the package on disk.

    filename is relative to package_dir and always starts with "/".
    """
    package_spec: str
    package_dir: str
    filename: str
    stats: FileStats
    package_config: Dict[str, Any] = field(default_factory=dict)
    package_info: Optional[PackageInfo] = None
    package_version: str = ""
    meta: bool = False
    module: bool = False
    html: bool = False

    @property
    def path(self) -> str:
        """Absolute path of the requested entry"""
        return os.path.join(self.package_dir, self.filename.lstrip("/"))

    @property
    def label(self) -> str:
        """Client-facing name of the entry, e.g. lodash@4.17.21/package.json"""
        return f"{self.package_spec}{self.filename}"

    def dependencies(self) -> Dict[str, str]:
        return merge_dependencies(self.package_config)


@dataclass(frozen=True)
class CachePolicy:
    max_age: int
    tags: Tuple[str, ...] = ()

    def headers(self) -> Dict[str, str]:
        headers = {"Cache-Control": f"public, max-age={self.max_age}"}
        if self.tags:
            headers["Cache-Tag"] = ",".join(self.tags)
        return headers


@dataclass(frozen=True)
class Entry:
    """One immediate child of a listed directory"""
    name: str
    is_directory: bool
    size: int
    mtime: float


@dataclass(frozen=True)
class RewriteError:
    name: str
    message: str
    code_frame: str = ""


@dataclass(frozen=True)
class RewriteResult:
    """Either the rewritten module source or the reason it could not be produced"""
    code: Optional[str] = None
    error: Optional[RewriteError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# === Metadata tree ===

class FileNode(BaseModel):
    path: str
    type: Literal["file"] = "file"
    contentType: str
    size: int
    lastModified: str
    integrity: Optional[str] = None


class DirectoryNode(BaseModel):
    path: str
    type: Literal["directory"] = "directory"
    files: List[Union["FileNode", "DirectoryNode"]] = []


MetadataNode = Union[FileNode, DirectoryNode]

DirectoryNode.model_rebuild()
