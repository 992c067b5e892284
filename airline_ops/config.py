"""Environment driven settings."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_DB_URL = "sqlite+pysqlite:///airline.db"


@dataclass(frozen=True)
class Settings:
    db_url: str = DEFAULT_DB_URL
    db_timeout: float = 5.0
    log_level: str = "INFO"
    echo_sql: bool = False


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def get_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from ``AIRLINE_OPS_*`` environment variables."""

    env = os.environ if environ is None else environ
    raw_timeout = env.get("AIRLINE_OPS_DB_TIMEOUT", "5.0")
    try:
        timeout = float(raw_timeout)
    except ValueError as exc:
        raise ValueError(f"AIRLINE_OPS_DB_TIMEOUT must be a number, got '{raw_timeout}'") from exc
    if timeout <= 0:
        raise ValueError("AIRLINE_OPS_DB_TIMEOUT must be positive")
    return Settings(
        db_url=env.get("AIRLINE_OPS_DB_URL", DEFAULT_DB_URL),
        db_timeout=timeout,
        log_level=env.get("AIRLINE_OPS_LOG_LEVEL", "INFO").upper(),
        echo_sql=_as_bool(env.get("AIRLINE_OPS_ECHO_SQL", "0")),
    )
