"""Global configuration — XDG paths, env vars, defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

HASH_DATABASE_NAME = "hash-database.json"


def _default_data_dir() -> Path:
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / "extguard"
    return Path.home() / ".local" / "share" / "extguard"


@dataclass
class ExtGuardConfig:
    """Application-wide configuration."""

    data_dir: Path = field(default_factory=_default_data_dir)
    concurrency: int = 4
    timeout: float = 30.0
    hash_db_path: Path | None = None

    @property
    def hash_database(self) -> Path:
        """User hash database file; defaults into the data directory."""
        return self.hash_db_path or self.data_dir / HASH_DATABASE_NAME

    @classmethod
    def load(cls) -> ExtGuardConfig:
        """Load config from environment variables with XDG defaults."""
        config = cls()

        env_concurrency = os.environ.get("EXTGUARD_CONCURRENCY")
        if env_concurrency:
            config.concurrency = _positive(int, "EXTGUARD_CONCURRENCY", env_concurrency)

        env_timeout = os.environ.get("EXTGUARD_TIMEOUT")
        if env_timeout:
            config.timeout = _positive(float, "EXTGUARD_TIMEOUT", env_timeout)

        env_hash_db = os.environ.get("EXTGUARD_HASH_DB")
        if env_hash_db:
            config.hash_db_path = Path(env_hash_db).expanduser()

        return config


def _positive(kind: type, name: str, raw: str):
    try:
        value = kind(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value
