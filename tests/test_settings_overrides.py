from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable
from zoneinfo import ZoneInfo

import pytest

from datastore.record_store import InMemoryRecordStore, JsonRecordStore, build_default_store
from services.scheduler import build_default_refresher
from settings import get_settings
from storage.camera_catalog import build_default_catalog

CACHES = (
    get_settings,
    build_default_store,
    build_default_catalog,
    build_default_refresher,
)


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


@pytest.fixture(autouse=True)
def fresh_caches() -> Iterable[None]:
    _clear_caches(CACHES)
    yield
    _clear_caches(CACHES)


def test_defaults(monkeypatch) -> None:
    for name in (
        "RECORD_STORE_PATH",
        "CAMERA_DATA_PATH",
        "TRAFFIC_TIME_ZONE",
        "TRAFFIC_LAUNCH_DAY",
        "REFRESH_INTERVAL_SECONDS",
        "QUERY_TIMEOUT_SECONDS",
        "API_PORT",
        "API_ALLOW_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.time_zone == ZoneInfo("America/Vancouver")
    assert settings.launch_day == datetime(2023, 12, 30, 8, 0, tzinfo=timezone.utc)
    assert settings.refresh_interval_seconds == 600.0
    assert settings.query_timeout_seconds == 60.0
    assert settings.api_port == 3001
    assert settings.allow_origins == ("*",)


def test_environment_overrides_apply(monkeypatch, tmp_path: Path) -> None:
    store_path = tmp_path / "counts.json"
    camera_path = tmp_path / "cameras.json"
    camera_path.write_text('[{"name": "Main&1st", "location": "here"}]')

    monkeypatch.setenv("RECORD_STORE_PATH", str(store_path))
    monkeypatch.setenv("CAMERA_DATA_PATH", str(camera_path))
    monkeypatch.setenv("TRAFFIC_TIME_ZONE", "UTC")
    monkeypatch.setenv("TRAFFIC_LAUNCH_DAY", "2024-02-01T00:00:00Z")
    monkeypatch.setenv("REFRESH_INTERVAL_SECONDS", "30")
    monkeypatch.setenv("QUERY_TIMEOUT_SECONDS", "5")
    monkeypatch.setenv("API_PORT", "8080")
    monkeypatch.setenv("API_ALLOW_ORIGINS", "http://a.test, http://b.test")

    settings = get_settings()
    store = build_default_store()
    refresher = build_default_refresher()

    try:
        assert settings.time_zone == ZoneInfo("UTC")
        assert settings.launch_day == datetime(2024, 2, 1, tzinfo=timezone.utc)
        assert settings.api_port == 8080
        assert settings.allow_origins == ("http://a.test", "http://b.test")
        assert isinstance(store, JsonRecordStore)
        assert store.path == store_path
        assert refresher.interval_seconds == 30.0
        assert refresher.query_timeout_seconds == 5.0
        assert refresher.store is store
        assert refresher.aggregator.catalog.location_for("Main&1st") == "here"
    finally:
        refresher.shutdown()


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("TRAFFIC_TIME_ZONE", "Mars/Olympus_Mons")
    monkeypatch.setenv("TRAFFIC_LAUNCH_DAY", "yesterday")
    monkeypatch.setenv("REFRESH_INTERVAL_SECONDS", "-5")
    monkeypatch.setenv("QUERY_TIMEOUT_SECONDS", "soon")
    monkeypatch.setenv("API_PORT", "99999")
    monkeypatch.setenv("LOG_LEVEL", " debug ")

    settings = get_settings()

    assert settings.time_zone == ZoneInfo("America/Vancouver")
    assert settings.launch_day == datetime(2023, 12, 30, 8, 0, tzinfo=timezone.utc)
    assert settings.refresh_interval_seconds == 600.0
    assert settings.query_timeout_seconds == 60.0
    assert settings.api_port == 3001
    assert settings.log_level == "DEBUG"


def test_blank_store_path_uses_in_memory_store(monkeypatch) -> None:
    monkeypatch.setenv("RECORD_STORE_PATH", "  ")

    assert isinstance(build_default_store(), InMemoryRecordStore)
