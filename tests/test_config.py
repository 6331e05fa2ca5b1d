import pytest

from pkgcdn.config import MAXIMUM_DEPTH, get_settings, reset_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


def test_defaults(monkeypatch, tmp_path):
    for name in ("PKGCDN_PACKAGES_DIR", "PKGCDN_ORIGIN", "PKGCDN_DISABLE_INDEX", "PKGCDN_MAXIMUM_DEPTH"):
        monkeypatch.delenv(name, raising=False)
    settings = get_settings(env_file=tmp_path / "missing.env")

    assert settings.auto_index is True
    assert settings.origin == "https://unpkg.com"
    assert settings.maximum_depth == MAXIMUM_DEPTH


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("PKGCDN_PACKAGES_DIR", str(tmp_path))
    monkeypatch.setenv("PKGCDN_ORIGIN", "https://cdn.example.com/")
    monkeypatch.setenv("PKGCDN_DISABLE_INDEX", "1")
    monkeypatch.setenv("PKGCDN_MAXIMUM_DEPTH", "4")
    settings = get_settings(env_file=tmp_path / "missing.env")

    assert settings.packages_dir == str(tmp_path)
    assert settings.origin == "https://cdn.example.com"
    assert settings.auto_index is False
    assert settings.maximum_depth == 4
    assert get_settings() is settings
