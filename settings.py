from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional


_UPLOAD_ROOT_ENV = "UPLOAD_ROOT_PATH"
_CHART_WIDTH_ENV = "CHART_WIDTH"
_CHART_HEIGHT_ENV = "CHART_HEIGHT"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Margins:
    top: int = 20
    right: int = 40
    bottom: int = 40
    left: int = 50


@dataclass(frozen=True)
class Settings:
    upload_root_path: Optional[str]
    chart_width: int
    chart_height: int
    log_level: str
    margins: Margins = field(default_factory=Margins)


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


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
        upload_root_path=_read_optional_env(_UPLOAD_ROOT_ENV, None),
        chart_width=_read_positive_int(_CHART_WIDTH_ENV, 960),
        chart_height=_read_positive_int(_CHART_HEIGHT_ENV, 500),
        log_level=_read_log_level("INFO"),
    )
