# src/sms_scheduler/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Malformed values fall back to defaults instead of crashing startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "SMS"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


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


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Switches ----
    console_enabled: bool
    scheduler_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path

    # ---- Scheduler tuning ----
    tick_interval_seconds: float
    max_concurrency: int
    batch_limit: int

    # ---- SMS gateway (optional; offline sender when unset) ----
    gateway_url: Optional[str]
    gateway_token: Optional[str]
    gateway_timeout_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "sms-scheduler") or "sms-scheduler"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        scheduler_enabled = _env_bool(_k("SCHEDULER_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/sms_scheduler"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        tick_interval_seconds = _env_float(_k("TICK_INTERVAL_SECONDS"), 60.0)
        if tick_interval_seconds <= 0:
            tick_interval_seconds = 60.0
        max_concurrency = max(1, _env_int(_k("MAX_CONCURRENCY"), 4))
        batch_limit = max(0, _env_int(_k("BATCH_LIMIT"), 500))

        gateway_url = _env(_k("GATEWAY_URL"), "").strip() or None
        gateway_token = _env(_k("GATEWAY_TOKEN"), "").strip() or None
        gateway_timeout_seconds = _env_float(_k("GATEWAY_TIMEOUT_SECONDS"), 10.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            scheduler_enabled=scheduler_enabled,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            tick_interval_seconds=tick_interval_seconds,
            max_concurrency=max_concurrency,
            batch_limit=batch_limit,
            gateway_url=gateway_url,
            gateway_token=gateway_token,
            gateway_timeout_seconds=gateway_timeout_seconds,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
