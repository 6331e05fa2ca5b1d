import json

import pytest

from pkgcdn.actions.serve_file import FileServer, sanitize_message
from pkgcdn.models import RewriteResult


class RecordingRewriter:
    """Module rewriter that only records how it was called"""

    def __init__(self, code="export default 1;\n"):
        self.calls = []
        self.code = code

    async def __call__(self, file, dependencies, origin):
        self.calls.append((file, dependencies, origin))
        return RewriteResult(code=self.code)


@pytest.mark.anyio
async def test_meta_wins_over_module(make_request):
    rewriter = RecordingRewriter()
    server = FileServer(module_rewriter=rewriter)
    response = await server.serve(make_request("mypkg@1.0.0", "/index.js", meta=True, module=True))

    assert response.status_code == 200
    assert response.headers["Cache-Tag"] == "meta"
    assert response.headers["Cache-Control"] == "public, max-age=31536000"
    assert response.headers["Content-Type"] == "application/json"
    assert json.loads(response.body)["path"] == "/index.js"
    assert rewriter.calls == []


@pytest.mark.anyio
async def test_meta_for_directory(make_request):
    response = await FileServer().serve(make_request("mypkg@1.0.0", "/lib", meta=True))
    data = json.loads(response.body)
    assert data["type"] == "directory"
    assert sorted(child["path"] for child in data["files"]) == ["/lib/data.json", "/lib/util.js"]


@pytest.mark.anyio
@pytest.mark.parametrize("filename", ["/lib/data.json", "/README", "/blob.bin"])
async def test_module_mode_rejects_non_javascript(make_request, filename):
    rewriter = RecordingRewriter()
    server = FileServer(module_rewriter=rewriter)
    response = await server.serve(make_request("mypkg@1.0.0", filename, module=True))

    assert response.status_code == 403
    assert response.headers["Content-Type"].startswith("text/plain")
    assert "Cache-Control" not in response.headers
    assert response.body.decode().startswith(f"Cannot serve mypkg@1.0.0{filename}")
    assert "only for JavaScript files" in response.body.decode()
    assert rewriter.calls == []


@pytest.mark.anyio
async def test_module_mode_passes_merged_dependencies(make_request):
    rewriter = RecordingRewriter(code="export default 'é';\n")
    server = FileServer(origin="https://cdn.example.com/", module_rewriter=rewriter)
    req = make_request("mypkg@1.0.0", "/index.js", module=True)
    response = await server.serve(req)

    assert response.status_code == 200
    assert response.headers["Content-Type"] == "application/javascript; charset=utf-8"
    assert response.headers["Cache-Tag"] == "file,js-file,js-module"
    assert response.headers["Content-Length"] == str(len("export default 'é';\n".encode("utf-8")))
    file, dependencies, origin = rewriter.calls[0]
    assert file == req.path
    assert dependencies == {"lodash": "^4.0.0", "react": ">=16"}
    assert origin == "https://cdn.example.com"


@pytest.mark.anyio
async def test_module_syntax_error_is_sanitized(make_request, packages_dir):
    response = await FileServer().serve(make_request("mypkg@1.0.0", "/broken.js", module=True))
    body = response.body.decode()

    assert response.status_code == 500
    assert body.startswith("Cannot generate module for mypkg@1.0.0/broken.js\n\n")
    assert "SyntaxError: /mypkg@1.0.0/broken.js: " in body
    assert str(packages_dir) not in body
    assert "> 2 | var b = ;" in body


@pytest.mark.anyio
async def test_directory_index(make_request):
    response = await FileServer().serve(make_request("mypkg@1.0.0", "/lib"))
    assert response.status_code == 200
    assert response.headers["Cache-Control"] == "public, max-age=60"
    assert response.headers["Cache-Tag"] == "index"
    assert "Index of /lib/" in response.body.decode()


@pytest.mark.anyio
async def test_directory_without_auto_index_is_forbidden(make_request):
    response = await FileServer(auto_index=False).serve(make_request("mypkg@1.0.0", "/lib"))
    assert response.status_code == 403
    assert response.body.decode() == "Cannot serve mypkg@1.0.0/lib; it's not a file"


@pytest.mark.anyio
async def test_listing_failure_names_package_and_path(make_request):
    async def failing_lister(dir):
        raise OSError("disk on fire")

    response = await FileServer(entry_lister=failing_lister).serve(make_request("mypkg@1.0.0", "/lib"))
    body = response.body.decode()

    assert response.status_code == 500
    assert "mypkg@1.0.0" in body
    assert "/lib" in body
    assert "disk on fire" not in body


def test_sanitize_message():
    assert sanitize_message(
        "/srv/packages/a@1.0.0/index.js: Unexpected token (1:2)", "/srv/packages/a@1.0.0", "a@1.0.0"
    ) == "/a@1.0.0/index.js: Unexpected token (1:2)"
    assert sanitize_message(
        "/tmp/unpkg-Xy12/package/index.js: boom", "/srv/packages/a@1.0.0", "a@1.0.0"
    ) == "/a@1.0.0/package/index.js: boom"


@pytest.mark.anyio
async def test_unexpected_failure_names_package_and_path(make_request):
    async def exploding_rewriter(file, dependencies, origin):
        raise RuntimeError("boom")

    server = FileServer(module_rewriter=exploding_rewriter)
    response = await server.serve(make_request("mypkg@1.0.0", "/index.js", module=True))

    assert response.status_code == 500
    assert response.body.decode() == "Cannot serve mypkg@1.0.0/index.js"
