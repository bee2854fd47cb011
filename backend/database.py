# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
SQLAlchemy engine and session factory builders, the declarative base, the
FastAPI dependency that provides a DB session per request, and the
``atomic`` unit-of-work helper.

Nothing here is a module-level singleton: ``main.create_app`` builds the
engine from Settings and parks the session factory on ``app.state``, so
tests can point each app instance at its own database.
"""

from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from core.config import Settings

Base = declarative_base()


def _sqlite_on_connect(dbapi_conn, connection_record) -> None:
    # Hand transaction control to SQLAlchemy (see _sqlite_on_begin); pysqlite's
    # own implicit BEGIN breaks SAVEPOINT handling.
    dbapi_conn.isolation_level = None
    # SQLite ignores ON DELETE SET NULL unless this is set on every connection
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _sqlite_on_begin(conn) -> None:
    conn.exec_driver_sql("BEGIN")


def build_engine(settings: Settings) -> Engine:
    """
    Create the pooled engine.

    * pool_pre_ping drops connections the server closed while idle.
    * pool_size / max_overflow fix the number of concurrent DB sessions.
    * pool_timeout bounds how long a request waits for a free connection.
    * On PostgreSQL / MySQL every statement is capped by the server-side
      statement timeout.
    """
    url = settings.database_url
    kwargs = {"pool_pre_ping": True}
    connect_args = {}

    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    else:
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout_seconds,
        )
        if url.startswith("postgresql"):
            connect_args["connect_timeout"] = max(1, int(settings.db_pool_timeout_seconds))
            connect_args["options"] = f"-c statement_timeout={settings.db_statement_timeout_ms}"
        elif url.startswith("mysql"):
            connect_args["connect_timeout"] = max(1, int(settings.db_pool_timeout_seconds))
            connect_args["init_command"] = f"SET SESSION max_execution_time={settings.db_statement_timeout_ms}"

    engine = create_engine(url, connect_args=connect_args, **kwargs)

    if url.startswith("sqlite"):
        event.listen(engine, "connect", _sqlite_on_connect)
        event.listen(engine, "begin", _sqlite_on_begin)

    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False: handlers serialise ORM rows after the commit
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def ping(engine: Engine) -> None:
    """Run a trivial query.  Raises SQLAlchemyError when the database is unreachable."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def get_db(request: Request) -> Iterator[Session]:
    """
    FastAPI dependency.  Yields a session for the duration of the request,
    then closes it.  Use with Depends(get_db).

    Closing a session with an open transaction rolls it back, so a handler
    that raises before its commit leaves no partial writes behind.  Client
    disconnects are not observed while a sync handler runs: a write that has
    started still commits.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    One unit of work: commit when the block finishes, roll back and re-raise
    when it fails.  A state change and its audit entry always share one
    ``atomic`` block.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
