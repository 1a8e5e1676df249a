from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


_RECORD_STORE_PATH_ENV = "RECORD_STORE_PATH"
_CAMERA_DATA_PATH_ENV = "CAMERA_DATA_PATH"
_TIME_ZONE_ENV = "TRAFFIC_TIME_ZONE"
_LAUNCH_DAY_ENV = "TRAFFIC_LAUNCH_DAY"
_REFRESH_INTERVAL_ENV = "REFRESH_INTERVAL_SECONDS"
_QUERY_TIMEOUT_ENV = "QUERY_TIMEOUT_SECONDS"
_API_HOST_ENV = "API_HOST"
_API_PORT_ENV = "API_PORT"
_ALLOW_ORIGINS_ENV = "API_ALLOW_ORIGINS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_TIME_ZONE = "America/Vancouver"
DEFAULT_LAUNCH_DAY = "2023-12-30T00:00:00-08:00"


@dataclass(frozen=True)
class Settings:
    record_store_path: Optional[str]
    camera_data_path: str
    time_zone: ZoneInfo
    launch_day: datetime
    refresh_interval_seconds: float
    query_timeout_seconds: float
    api_host: str
    api_port: int
    allow_origins: Tuple[str, ...]
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_port(default: int) -> int:
    value = os.getenv(_API_PORT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if 0 < parsed < 65536 else default


def _read_time_zone(default: str) -> ZoneInfo:
    name = _read_str_env(_TIME_ZONE_ENV, default)
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo(default)


def _read_launch_day(default: str) -> datetime:
    candidate = _read_str_env(_LAUNCH_DAY_ENV, default)
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        parsed = datetime.fromisoformat(default)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _read_allow_origins(default: str) -> Tuple[str, ...]:
    raw = _read_str_env(_ALLOW_ORIGINS_ENV, default)
    origins = tuple(item.strip() for item in raw.split(",") if item.strip())
    return origins or (default,)


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        record_store_path=_read_optional_env(
            _RECORD_STORE_PATH_ENV, "./data/vehicle_counts.json"
        ),
        camera_data_path=_read_str_env(_CAMERA_DATA_PATH_ENV, "./data/camera_data.json"),
        time_zone=_read_time_zone(DEFAULT_TIME_ZONE),
        launch_day=_read_launch_day(DEFAULT_LAUNCH_DAY),
        refresh_interval_seconds=_read_positive_float(_REFRESH_INTERVAL_ENV, 600.0),
        query_timeout_seconds=_read_positive_float(_QUERY_TIMEOUT_ENV, 60.0),
        api_host=_read_str_env(_API_HOST_ENV, "0.0.0.0"),
        api_port=_read_port(3001),
        allow_origins=_read_allow_origins("*"),
        log_level=_read_log_level("INFO"),
    )
