# billing_api/db.py
import logging
import time
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import get_settings
from .tables import Base

logger = logging.getLogger(__name__)

IMMEDIATE = "sqlite_immediate"

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def _install_sqlite_locking(engine: Engine) -> None:
    """Let ledger transactions take the SQLite write lock up front.

    SQLite has no row locks and silently drops FOR UPDATE, so a transaction
    that reads a balance and later writes it must hold the database lock from
    its first statement. Connections tagged with the ``IMMEDIATE`` execution
    option begin with BEGIN IMMEDIATE; everything else uses a deferred BEGIN
    and, under WAL, reads alongside the writer.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _record):
        # stop pysqlite from issuing its own deferred BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        if conn.get_execution_options().get(IMMEDIATE):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def begin_write(session: Session) -> None:
    """Start the session's next transaction as a locking write transaction.

    Any read-only transaction already open on the session is rolled back
    first, since its connection can no longer be retagged.
    """
    if session.in_transaction():
        session.rollback()
    session.connection(execution_options={IMMEDIATE: True})


def _install_slow_query_log(engine: Engine, threshold: float) -> None:
    @event.listens_for(engine, "before_cursor_execute")
    def _before(conn, _cursor, _statement, _parameters, _context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.perf_counter())

    @event.listens_for(engine, "after_cursor_execute")
    def _after(conn, _cursor, statement, _parameters, _context, _executemany):
        total = time.perf_counter() - conn.info["query_start_time"].pop(-1)
        if total > threshold:
            logger.warning(f"Slow query ({total:.2f}s): {statement[:200]}")


def configure_engine(url: Optional[str] = None) -> Engine:
    """(Re)bind the module engine and session factory."""
    global _engine, _SessionLocal
    settings = get_settings()
    db_url = make_url(url or settings.database_url)

    if _engine is not None:
        _engine.dispose()

    kwargs = {"echo": settings.db_echo, "pool_pre_ping": True}
    if db_url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
        if db_url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool

    _engine = create_engine(db_url, **kwargs)
    if db_url.get_backend_name() == "sqlite":
        _install_sqlite_locking(_engine)
    if settings.slow_query_seconds > 0:
        _install_slow_query_log(_engine, settings.slow_query_seconds)

    _SessionLocal = sessionmaker(bind=_engine, autoflush=False, expire_on_commit=False)
    logger.info(f"Database engine configured for {db_url.render_as_string(hide_password=True)}")
    return _engine


def _ensure_engine() -> None:
    if _engine is None:
        configure_engine()


def get_engine() -> Engine:
    _ensure_engine()
    return _engine


def new_session() -> Session:
    _ensure_engine()
    return _SessionLocal()


def get_session() -> Iterator[Session]:
    session = new_session()
    try:
        yield session
    finally:
        session.close()


def init_db(drop: bool = False) -> None:
    engine = get_engine()
    if drop:
        Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)


def dispose_engine() -> None:
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
