"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class KPIUploadSettings:
    """
    Runtime settings for KPI telemetry CSV uploads.
    """

    batch_size: int = 50
    batch_retries: int = 1
    max_file_bytes: int = 10 * 1024 * 1024


@dataclass(frozen=True)
class SafeQuerySettings:
    """
    Attempt and timeout budget for resilient store reads.
    """

    attempts: int = 2
    timeout_ms: int = 12000


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@lru_cache(maxsize=1)
def get_kpi_upload_settings() -> KPIUploadSettings:
    """
    Return cached KPI upload settings from environment variables.
    """

    return KPIUploadSettings(
        batch_size=max(1, _get_int_env("CSV_UPLOAD_BATCH_SIZE", 50)),
        batch_retries=max(0, _get_int_env("CSV_UPLOAD_BATCH_RETRIES", 1)),
        max_file_bytes=max(1, _get_int_env("CSV_UPLOAD_MAX_FILE_BYTES", 10 * 1024 * 1024)),
    )


@lru_cache(maxsize=1)
def get_safe_query_settings() -> SafeQuerySettings:
    """
    Return cached resilient-read settings from environment variables.
    """

    return SafeQuerySettings(
        attempts=max(1, _get_int_env("SAFE_QUERY_ATTEMPTS", 2)),
        timeout_ms=max(1, _get_int_env("SAFE_QUERY_TIMEOUT_MS", 12000)),
    )


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    return LoggingSettings(level=_get_str_env("LOG_LEVEL", "INFO").upper())
