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


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


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

    APP_NAME = "Billsync"
    DB_FILENAME = "billsync.db"
    SQLITE_PRAGMAS = {"foreign_keys": "on"}

    # Fuzzy matching tolerances for legacy transactions without a link.
    DEFAULT_AMOUNT_TOLERANCE = 1.0
    DEFAULT_MIN_NAME_LENGTH = 3
    DEFAULT_GRACE_DAYS = 7
    DEFAULT_DUE_DAY = 15

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("BILLSYNC_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("BILLSYNC_DATABASE_URL", self._build_sqlite_url())
        self.ATOMIC_PAYMENTS = _env_bool("BILLSYNC_ATOMIC_PAYMENTS", default=True)
        self.RECONCILE_ON_READ = _env_bool("BILLSYNC_RECONCILE_ON_READ", default=True)
        self.FUZZY_MATCHING = _env_bool("BILLSYNC_FUZZY_MATCHING", default=True)
        self.AMOUNT_TOLERANCE = _env_float(
            "BILLSYNC_AMOUNT_TOLERANCE", self.DEFAULT_AMOUNT_TOLERANCE
        )
        self.MIN_NAME_LENGTH = _env_int("BILLSYNC_MIN_NAME_LENGTH", self.DEFAULT_MIN_NAME_LENGTH)
        self.GRACE_DAYS = _env_int("BILLSYNC_GRACE_DAYS", self.DEFAULT_GRACE_DAYS)
        self.DUE_DAY = _env_int("BILLSYNC_DUE_DAY", self.DEFAULT_DUE_DAY)
        if not 1 <= self.DUE_DAY <= 28:
            raise ValueError("BILLSYNC_DUE_DAY must be between 1 and 28.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("BILLSYNC_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        engine_options: dict[str, Any] = {}
        if self.is_sqlite:
            engine_options["connect_args"] = {"check_same_thread": False}
        else:
            # Hosted stores drop idle connections; validate before use.
            engine_options["pool_pre_ping"] = True
        return engine_options

