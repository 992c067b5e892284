"""Database helpers for the airline operations store."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Tuple

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import get_settings
from .errors import TransientUnavailable, WriteFailed
from .models import Base

logger = logging.getLogger(__name__)


def _serialize_sqlite_writers(engine: Engine) -> None:
    # pysqlite defers BEGIN until the first DML statement; take the write lock up
    # front so a read-decide-write sequence cannot interleave with another writer.
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_factory(
    db_url: Optional[str] = None,
    *,
    echo: Optional[bool] = None,
    timeout: Optional[float] = None,
    connect_args: Dict[str, object] | None = None,
) -> Tuple[Engine, sessionmaker[Session]]:
    """Return an engine/session factory pair, SQLite by default.

    ``timeout`` bounds every wait on the store (SQLite busy timeout, pool
    checkout elsewhere); an expired wait surfaces as ``TransientUnavailable``.
    """

    settings = get_settings()
    db_url = db_url or settings.db_url
    echo = settings.echo_sql if echo is None else echo
    timeout = settings.db_timeout if timeout is None else timeout

    if db_url.startswith("sqlite"):
        final_connect_args: Dict[str, object] = {"check_same_thread": False, "timeout": timeout}
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
            engine = create_engine(db_url, echo=echo, connect_args=final_connect_args)
        _serialize_sqlite_writers(engine)
    else:
        engine = create_engine(
            db_url,
            echo=echo,
            connect_args=connect_args or {},
            pool_timeout=timeout,
            isolation_level="SERIALIZABLE",
        )
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    logger.debug("Session factory created for %s", engine.url.render_as_string(hide_password=True))
    return engine, session_factory


def init_db(db_url: Optional[str] = None, *, echo: Optional[bool] = None) -> sessionmaker[Session]:
    """Create all tables and return a session factory."""

    engine, session_factory = create_session_factory(db_url, echo=echo)
    Base.metadata.create_all(engine)
    return session_factory


@contextmanager
def translate_db_errors(action: str) -> Iterator[None]:
    """Re-raise driver failures as the typed errors callers handle."""

    try:
        yield
    except OperationalError as exc:
        logger.warning("%s: store unavailable: %s", action, exc.orig)
        raise TransientUnavailable(f"{action}: store unavailable") from exc
    except IntegrityError as exc:
        logger.warning("%s: write rejected: %s", action, exc.orig)
        raise WriteFailed(f"{action}: write rejected by the store") from exc


@contextmanager
def session_scope(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""

    session = session_factory()
    try:
        with translate_db_errors("transaction"):
            yield session
            session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
