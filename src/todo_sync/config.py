# src/todo_sync/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing required at import time; every value has a local-dev default.
- Settings are passed explicitly (bootstrap, tests); get_settings() is only the default source.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

ENV_PREFIX = "TODO_SYNC"

DEFAULT_API_BASE_URL = "http://localhost:3001/api"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env from the working directory without overriding the real environment."""
    from dotenv import load_dotenv

    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def default_health_url(api_base_url: str) -> str:
    """`http://host:3001/api` -> `http://host:3001/health` (the server's liveness route)."""
    parts = urlsplit(api_base_url)
    if not parts.scheme or not parts.netloc:
        return "/health"
    return urlunsplit((parts.scheme, parts.netloc, "/health", "", ""))


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Remote API ----
    api_base_url: str
    health_url: str
    request_timeout_seconds: float | None

    # ---- Network health ----
    slow_connection_seconds: float
    probe_enabled: bool
    probe_interval_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    filter_storage_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "todo-sync").strip() or "todo-sync"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        api_base_url = _env(_k("API_BASE_URL"), DEFAULT_API_BASE_URL).strip().rstrip("/")
        api_base_url = api_base_url or DEFAULT_API_BASE_URL
        health_url = _env(_k("HEALTH_URL"), "").strip() or default_health_url(api_base_url)

        # 0 (the default) means "no timeout": a hung request only delays its own completion.
        timeout = _env_float(_k("REQUEST_TIMEOUT_SECONDS"), 0.0)
        request_timeout_seconds = timeout if timeout > 0 else None

        slow_connection_seconds = _env_float(_k("SLOW_CONNECTION_SECONDS"), 3.0)
        probe_enabled = _env_bool(_k("PROBE_ENABLED"), True)
        probe_interval_seconds = _env_float(_k("PROBE_INTERVAL_SECONDS"), 30.0)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/todo-sync"))
        filter_storage_path = _env_path(_k("FILTER_STORAGE_PATH"), data_dir / "filters.json")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            api_base_url=api_base_url,
            health_url=health_url,
            request_timeout_seconds=request_timeout_seconds,
            slow_connection_seconds=slow_connection_seconds,
            probe_enabled=probe_enabled,
            probe_interval_seconds=probe_interval_seconds,
            data_dir=data_dir,
            filter_storage_path=filter_storage_path,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
