"""Database helpers for the booking system."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, Tuple

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import DEFAULT_DATABASE_URL
from .models import Base

logger = logging.getLogger(__name__)


WRITE_LOCK_OPTION = "airport_booking_write_lock"


def _install_sqlite_hooks(engine: Engine) -> None:
    # pysqlite defers BEGIN on its own, which breaks SAVEPOINT handling. Emit it
    # here instead. Writers take the write lock at BEGIN so two of them cannot
    # deadlock upgrading from a read; readers keep a deferred BEGIN.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # pragma: no cover - driver hook
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):  # pragma: no cover - driver hook
        if conn.get_execution_options().get(WRITE_LOCK_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def create_session_factory(
    db_url: str = DEFAULT_DATABASE_URL,
    *,
    echo: bool = False,
    timeout: float = 30.0,
    connect_args: Dict[str, object] | None = None,
) -> Tuple[Engine, sessionmaker[Session]]:
    """Return an engine/session factory pair, SQLite by default.

    ``timeout`` bounds every wait on the database: the SQLite busy timeout, or
    the PostgreSQL connect and statement timeouts.
    """

    is_sqlite = db_url.startswith("sqlite")
    if is_sqlite:
        final_connect_args: Dict[str, object] = {"check_same_thread": False, "timeout": timeout}
    elif db_url.startswith("postgresql"):
        final_connect_args = {
            "connect_timeout": max(int(timeout), 1),
            "options": f"-c statement_timeout={int(timeout * 1000)}",
        }
    else:
        final_connect_args = {}
    if connect_args:
        final_connect_args.update(connect_args)

    if db_url.endswith(":memory:"):
        engine = create_engine(
            db_url,
            echo=echo,
            connect_args=final_connect_args,
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            db_url,
            echo=echo,
            connect_args=final_connect_args,
            pool_pre_ping=not is_sqlite,
        )
    if is_sqlite:
        _install_sqlite_hooks(engine)
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    logger.debug("Configured database engine for %s", engine.url.render_as_string(hide_password=True))
    return engine, session_factory


def init_db(
    db_url: str = DEFAULT_DATABASE_URL, *, echo: bool = False, timeout: float = 30.0
) -> sessionmaker[Session]:
    """Create all tables and return a session factory."""

    engine, session_factory = create_session_factory(db_url, echo=echo, timeout=timeout)
    Base.metadata.create_all(engine)
    return session_factory


def begin_write(session: Session) -> Session:
    """Start the transaction of ``session`` as a writer.

    On SQLite the database write lock is taken at BEGIN, waiting up to the busy
    timeout. Call it before the session runs its first statement.
    """

    session.connection(execution_options={WRITE_LOCK_OPTION: True})
    return session


@contextmanager
def session_scope(
    session_factory: sessionmaker[Session], *, write: bool = False
) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""

    session = session_factory()
    try:
        if write:
            begin_write(session)
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
