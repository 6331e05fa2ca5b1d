import json

from pkgcdn.cli import main


def test_meta_command(packages_dir, capsys):
    assert main(["meta", str(packages_dir / "mypkg@1.0.0" / "lib"), "--depth", "1"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["type"] == "directory"
    assert sorted(child["path"] for child in data["files"]) == ["/data.json", "/util.js"]


def test_module_command(packages_dir, capsys):
    file = packages_dir / "mypkg@1.0.0" / "index.js"
    assert main(["module", str(file), "--origin", "https://cdn.example.com"]) == 0
    assert "https://cdn.example.com/lodash@^4.0.0?module" in capsys.readouterr().out


def test_module_command_reports_syntax_error(packages_dir, capsys):
    file = packages_dir / "mypkg@1.0.0" / "broken.js"
    assert main(["module", str(file), "--origin", "https://cdn.example.com"]) == 1
    assert "SyntaxError" in capsys.readouterr().err
