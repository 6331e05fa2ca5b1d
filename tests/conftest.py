"""
Shared fixtures: a directory of extracted packages and an app serving it
"""
import json
import os

import pytest
from fastapi.testclient import TestClient

from pkgcdn.config import Settings
from pkgcdn.models import FileStats, PackageInfo, ResolvedRequest
from pkgcdn.server import create_app

KNOWN_MTIME = 1613835736.891


def _write(path, content):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    mode = "wb" if isinstance(content, bytes) else "w"
    with open(path, mode) as f:
        f.write(content)


def _padded_package_json(config, size):
    # pad the description so the file is exactly `size` bytes
    config = dict(config, description="x")
    base = len(json.dumps(config, indent=2))
    config["description"] = "x" * (size - base + 1)
    text = json.dumps(config, indent=2)
    assert len(text) == size
    return text


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def packages_dir(tmp_path):
    root = tmp_path / "packages"

    lodash = root / "lodash@4.17.21"
    _write(str(lodash / "package.json"), _padded_package_json({"name": "lodash", "version": "4.17.21"}, 1500))
    os.utime(lodash / "package.json", (KNOWN_MTIME, KNOWN_MTIME))
    _write(str(lodash / "lodash.js"), "module.exports = {};\n")
    (root / "lodash@4.17.20").mkdir(parents=True)
    (root / "lodash@4.17.20" / "package.json").write_text('{"name": "lodash"}')

    mypkg = root / "mypkg@1.0.0"
    _write(str(mypkg / "package.json"), json.dumps({
        "name": "mypkg",
        "version": "1.0.0",
        "dependencies": {"lodash": "^4.0.0"},
        "peerDependencies": {"react": ">=16", "lodash": "*"},
    }))
    _write(str(mypkg / "index.js"), 'import _ from "lodash";\nimport { h } from "./lib/util.js";\nexport default _;\n')
    _write(str(mypkg / "broken.js"), "const a = 1;\nvar b = ;\nexport default a;\n")
    _write(str(mypkg / "lib" / "util.js"), "export const h = 1;\n")
    _write(str(mypkg / "lib" / "data.json"), '{"a": 1}\n')
    _write(str(mypkg / "README"), "# mypkg\n<b>bold</b>\n")
    _write(str(mypkg / "blob.bin"), os.urandom(200000))

    scoped = root / "@scope" / "thing@2.0.0"
    _write(str(scoped / "package.json"), '{"name": "@scope/thing"}')
    _write(str(scoped / "main.js"), "export default 1;\n")

    return root


@pytest.fixture
def settings(packages_dir):
    return Settings(packages_dir=str(packages_dir), origin="https://unpkg.com")


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings))


@pytest.fixture
def make_request(packages_dir):
    """Build a ResolvedRequest for a file of a package in packages_dir"""

    def _make(spec, filename, **flags):
        package_dir = str(packages_dir / spec)
        path = os.path.join(package_dir, filename.lstrip("/"))
        with open(os.path.join(package_dir, "package.json")) as f:
            package_config = json.load(f)
        name, version = spec.rsplit("@", 1)
        return ResolvedRequest(
            package_spec=spec,
            package_dir=package_dir,
            filename=filename,
            stats=FileStats.from_stat(os.stat(path)),
            package_config=package_config,
            package_info=PackageInfo(name=name, versions=[version]),
            package_version=version,
            **flags,
        )

    return _make
