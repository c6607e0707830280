"""Runtime configuration loaded from ``AIRPORT_BOOKING_*`` environment variables."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///airport.db"
ENV_PREFIX = "AIRPORT_BOOKING_"

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_PREFIX_PATTERN = re.compile(r"^[A-Z]{2}$")
_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    db_timeout: float = 30.0
    lock_timeout: float = 10.0
    reference_prefix: str = "BK"
    reference_retries: int = 5
    contention_retries: int = 3
    log_level: str = "INFO"
    echo_sql: bool = False

    def __post_init__(self) -> None:
        if not _PREFIX_PATTERN.match(self.reference_prefix):
            raise ValueError("reference_prefix must be two uppercase letters")
        if self.reference_retries < 1 or self.contention_retries < 1:
            raise ValueError("retry bounds must be at least 1")
        if self.db_timeout <= 0 or self.lock_timeout <= 0:
            raise ValueError("timeouts must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from the environment, falling back to the defaults."""

        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            return value.strip() if value and value.strip() else None

        defaults = cls()
        return cls(
            database_url=get("DATABASE_URL") or defaults.database_url,
            db_timeout=float(get("DB_TIMEOUT") or defaults.db_timeout),
            lock_timeout=float(get("LOCK_TIMEOUT") or defaults.lock_timeout),
            reference_prefix=(get("REFERENCE_PREFIX") or defaults.reference_prefix).upper(),
            reference_retries=int(get("REFERENCE_RETRIES") or defaults.reference_retries),
            contention_retries=int(get("CONTENTION_RETRIES") or defaults.contention_retries),
            log_level=(get("LOG_LEVEL") or defaults.log_level).upper(),
            echo_sql=(get("ECHO_SQL") or "false").lower() in _TRUE_VALUES,
        )


def configure_logging(level: str = "INFO") -> None:
    """Install a root handler once; later calls only adjust the level."""

    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level '{level}'")
    logging.basicConfig(level=numeric, format=_LOG_FORMAT)
    logging.getLogger().setLevel(numeric)


__all__ = ["DEFAULT_DATABASE_URL", "Settings", "configure_logging"]
