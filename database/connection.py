"""
Provider Management - Database Connection

Owns the process-wide engine and hands out sessions bound to it.
Server databases get a pre-pinged QueuePool sized from settings; SQLite
keeps SQLAlchemy's default pool and is switched to explicit BEGIN so
savepoints (Session.begin_nested) behave under the pysqlite driver.

Usage:
    from database.connection import get_session, init_database

    if init_database():
        with get_session() as session:
            ProviderRoleRepository(session).get_all()
"""

import logging
from contextlib import contextmanager
from typing import Any, Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import URL, Connection, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from config.settings import get_settings
from database.models import Base


logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


# =============================================================================
# Engine Construction
# =============================================================================

def enable_sqlite_savepoints(engine: Engine) -> None:
    """Make SQLite transactions explicit so nested savepoints roll back cleanly."""
    # pysqlite defers BEGIN until the first DML statement, so a leading
    # SAVEPOINT would open (and RELEASE would commit) the outer transaction.
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn: Connection):
        conn.exec_driver_sql("BEGIN")


def _engine_options(url: URL, settings) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.database_echo}
    if url.get_backend_name() != "sqlite":
        options.update(
            poolclass=QueuePool,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
            pool_pre_ping=True,
        )
    return options


def build_engine(database_url: str) -> Engine:
    """
    Create an engine for a database URL using the configured pool options.

    Args:
        database_url: SQLAlchemy URL string

    Returns:
        New Engine; the caller owns it and should dispose of it
    """
    url = make_url(database_url)
    engine = create_engine(url, **_engine_options(url, get_settings()))

    if url.get_backend_name() == "sqlite":
        enable_sqlite_savepoints(engine)

    logger.info(
        "Database engine created",
        extra={"backend": url.get_backend_name(), "database": url.database},
    )
    return engine


# =============================================================================
# Shared Engine and Sessions
# =============================================================================

def get_engine() -> Engine:
    """Return the shared engine, creating it from settings on first use."""
    global _engine

    if _engine is None:
        _engine = build_engine(get_settings().database_url)
    return _engine


def close_engine() -> None:
    """Dispose of the shared engine; the next get_engine() builds a new one."""
    global _engine, _session_factory

    if _engine is None:
        return

    _engine.dispose()
    _engine = None
    _session_factory = None
    logger.debug("Database engine disposed")


def get_session_factory() -> sessionmaker:
    global _session_factory

    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(),
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Yield a session that is rolled back if the block raises.

    Nothing is committed here; callers commit explicitly.

    Usage:
        with get_session() as session:
            ProviderRoleRepository(session).save(role)
            session.commit()
    """
    session = get_session_factory()()

    try:
        yield session
    except Exception:
        logger.error("Rolling back session after error", exc_info=True)
        session.rollback()
        raise
    finally:
        session.close()


def get_raw_session() -> Session:
    """Return an unmanaged session; the caller must commit and close it."""
    return get_session_factory()()


# =============================================================================
# Startup and Health
# =============================================================================

def _ping(engine: Engine) -> None:
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def init_database() -> bool:
    """
    Verify the database is reachable.

    In development and test environments the schema is created from the
    models; elsewhere it must already exist.

    Returns:
        True if the database answered, False otherwise
    """
    settings = get_settings()

    try:
        engine = get_engine()
        _ping(engine)

        if settings.is_development or settings.is_test:
            Base.metadata.create_all(engine)
            logger.info("Schema ensured", extra={"environment": settings.environment})

    except Exception as e:
        logger.error("Database initialization failed", extra={"error": str(e)})
        return False

    logger.info("Database ready")
    return True


def check_database_health() -> dict:
    """
    Report whether the database answers a trivial query.

    Returns:
        Dictionary with healthy, connected and error keys
    """
    try:
        _ping(get_engine())
    except Exception as e:
        logger.error("Database health check failed", extra={"error": str(e)})
        return {"healthy": False, "connected": False, "error": str(e)}

    return {"healthy": True, "connected": True, "error": None}


__all__ = [
    "build_engine",
    "get_engine",
    "close_engine",
    "get_session",
    "get_raw_session",
    "init_database",
    "check_database_health",
]
