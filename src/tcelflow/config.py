# src/tcelflow/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Everything lives under a local, gitignored data directory by default.
- Tests build their own settings objects instead of reading the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TCELFLOW"

# localStorage-sized default for the fallback store.
DEFAULT_FALLBACK_QUOTA_BYTES = 5 * 1024 * 1024
DEFAULT_NOTIFY_TIMEOUT_MS = 3500

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


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

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    export_dir: Path

    # ---- Durable store (SQLite key/value) ----
    durable_enabled: bool
    durable_db_path: Path
    durable_namespace: str

    # ---- Fallback store (JSON file) ----
    fallback_path: Path
    fallback_quota_bytes: int

    # ---- UI ----
    notify_timeout_ms: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "tcelflow") or "tcelflow"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tcelflow"))
        export_dir = _env_path(_k("EXPORT_DIR"), data_dir / "exports")

        durable_enabled = _env_bool(_k("DURABLE_ENABLED"), True)
        durable_db_path = _env_path(_k("DURABLE_DB_PATH"), data_dir / "tcelflow-db.sqlite3")
        durable_namespace = _env(_k("DURABLE_NAMESPACE"), "kv").strip() or "kv"

        fallback_path = _env_path(_k("FALLBACK_PATH"), data_dir / "local_storage.json")
        fallback_quota_bytes = max(
            1024, _env_int(_k("FALLBACK_QUOTA_BYTES"), DEFAULT_FALLBACK_QUOTA_BYTES)
        )

        notify_timeout_ms = max(0, _env_int(_k("NOTIFY_TIMEOUT_MS"), DEFAULT_NOTIFY_TIMEOUT_MS))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            export_dir=export_dir,
            durable_enabled=durable_enabled,
            durable_db_path=durable_db_path,
            durable_namespace=durable_namespace,
            fallback_path=fallback_path,
            fallback_quota_bytes=fallback_quota_bytes,
            notify_timeout_ms=notify_timeout_ms,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
