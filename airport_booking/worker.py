"""Utility entrypoint for running the seat-counter reconciliation worker."""
from __future__ import annotations

import threading

from .config import Settings, configure_logging
from .database import init_db
from .maintenance import reconcile_loop


def main() -> None:  # pragma: no cover - thin wrapper
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    session_factory = init_db(settings.database_url, echo=settings.echo_sql, timeout=settings.db_timeout)
    stop = threading.Event()
    try:
        reconcile_loop(stop, session_factory)
    except KeyboardInterrupt:
        stop.set()


if __name__ == "__main__":  # pragma: no cover
    main()
