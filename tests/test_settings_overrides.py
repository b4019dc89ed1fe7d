from __future__ import annotations

from typing import Iterable

from services.workspace import build_default_workspace
from settings import Margins, get_settings
from storage.upload_store import build_default_store


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    upload_root = tmp_path / "uploads"

    monkeypatch.setenv("UPLOAD_ROOT_PATH", str(upload_root))
    monkeypatch.setenv("CHART_WIDTH", "1200")
    monkeypatch.setenv("CHART_HEIGHT", "640")
    monkeypatch.setenv("LOG_LEVEL", " debug ")

    caches = (get_settings, build_default_store, build_default_workspace)
    _clear_caches(caches)

    try:
        settings = get_settings()
        store = build_default_store()
        workspace = build_default_workspace()

        assert settings.chart_width == 1200
        assert settings.chart_height == 640
        assert settings.log_level == "DEBUG"
        assert store.root_path == upload_root
        assert upload_root.is_dir()
        assert workspace.parser.store is store
        assert workspace.margins == Margins()
    finally:
        _clear_caches(caches)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("UPLOAD_ROOT_PATH", "   ")
    monkeypatch.setenv("CHART_WIDTH", "wide")
    monkeypatch.setenv("CHART_HEIGHT", "-3")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    get_settings.cache_clear()

    try:
        settings = get_settings()

        assert settings.upload_root_path is None
        assert settings.chart_width == 960
        assert settings.chart_height == 500
        assert settings.log_level == "INFO"
    finally:
        get_settings.cache_clear()
