"""
Module: rental_kernel.db.engine
Responsibility: builds the one process-wide SQLAlchemy engine and hands out
    sessions bound to it.
Architecture position: Kernel > DB.  ``create_tables`` reaches into
    ``rental_modules._orm_registry`` so that the metadata is complete; no
    other outer-layer imports.

Backends:
    - PostgreSQL in production: pooled, READ COMMITTED.
    - SQLite for tests and local runs.  In-memory databases share a single
      connection (StaticPool), and the driver's implicit transaction
      handling is turned off so SAVEPOINTs nest correctly.

Failure modes:
    - RuntimeError when a session or the engine is requested before
      ``init_engine_from_url()``.
"""

import atexit
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from rental_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_NOT_INITIALIZED = "Engine not initialized. Call init_engine_from_url() first."

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _sqlite_engine(url: URL, echo: bool) -> Engine:
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, echo=echo, **kwargs)

    # pysqlite only opens a transaction at the first DML statement; emit
    # BEGIN ourselves so begin_nested() gets a real SAVEPOINT.
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def _postgres_engine(url: URL, echo: bool, **pool) -> Engine:
    return create_engine(
        url,
        echo=echo,
        poolclass=QueuePool,
        isolation_level="READ COMMITTED",
        **pool,
    )


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create the engine and session factory for ``database_url``.

    A second call replaces the previous engine.  Pool arguments apply to
    PostgreSQL only.
    """
    global _engine, _SessionFactory

    url = make_url(database_url)
    dialect = url.get_backend_name()
    if dialect == "sqlite":
        _engine = _sqlite_engine(url, echo)
    else:
        _engine = _postgres_engine(
            url,
            echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
        )
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": dialect, "database": url.database, "echo": echo},
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session() -> Session:
    """New session bound to the current engine."""
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Session that commits on normal exit and rolls back on error.

    Usage:
        with session_scope() as session:
            run_task(ExpireContractsTask(), session)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create every kernel and module table on the current engine."""
    from rental_kernel.db.base import Base
    from rental_modules._orm_registry import import_all_orm_models

    import_all_orm_models()
    Base.metadata.create_all(get_engine())
    logger.info("tables_created", extra={"table_count": len(Base.metadata.tables)})


def drop_tables() -> None:
    """Drop every table.  Tests and local resets only."""
    from rental_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


@atexit.register
def _dispose_on_exit() -> None:
    if _engine is not None:
        _engine.dispose()
