"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "Streakline"
    DB_FILENAME = "streakline.db"
    DEBUG = False
    TESTING = False
    JSON_SORT_KEYS = False
    SQLITE_PRAGMAS = {"foreign_keys": "on", "journal_mode": "wal"}

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("STREAKLINE_SECRET_KEY", "replace-me")
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("STREAKLINE_DEV_MODE", default=True)
        self.LOG_LEVEL = os.getenv("STREAKLINE_LOG_LEVEL", "INFO").upper()
        self.SQLITE_BUSY_TIMEOUT = _env_int("STREAKLINE_SQLITE_BUSY_TIMEOUT", 30)
        self.DATABASE_URL = os.getenv("STREAKLINE_DATABASE_URL", self._build_sqlite_url())
        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("STREAKLINE_SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("STREAKLINE_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = Path(self.DATA_DIR) / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        engine_options: dict[str, Any] = {}
        if self.is_sqlite:
            engine_options["connect_args"] = {
                "check_same_thread": False,
                "timeout": self.SQLITE_BUSY_TIMEOUT,
            }
        else:
            engine_options["pool_pre_ping"] = True
        return engine_options


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True


class TestConfig(BaseConfig):
    """Configuration used by the test-suite; callers point DATA_DIR at a temp dir."""

    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.DEV_MODE = True
