"""Async engine and session factory construction.

The engine owns the physical connection pool; one engine is created per
process (see ``app.core.resources``) and sessions are opened per operation.

SQLite has no row locks. A transaction opened on a connection carrying
``WRITE_LOCK_OPTIONS`` starts with ``BEGIN IMMEDIATE``: the database-wide
write lock is taken up front, which serializes purchase transactions the way
``SELECT ... FOR UPDATE`` does per row on PostgreSQL. Every other transaction
starts with a plain deferred ``BEGIN``, so catalog reads never wait on the
write lock. Other backends ignore the option.
"""

from __future__ import annotations

import logging

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import DatabaseSettings

logger = logging.getLogger(__name__)

WRITE_LOCK_OPTIONS = {"sqlite_begin": "IMMEDIATE"}


def _is_sqlite(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def _install_sqlite_locking(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # noqa: ARG001
        # Stop the driver from emitting its own deferred BEGIN.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get("sqlite_begin")
        conn.exec_driver_sql(f"BEGIN {mode}" if mode else "BEGIN")


def create_engine(cfg: DatabaseSettings) -> AsyncEngine:
    """Create the async engine for the configured database.

    Args:
        cfg: Database settings (``DB_*`` environment variables).

    Returns:
        AsyncEngine with pooling appropriate to the backend.
    """
    if _is_sqlite(cfg.url):
        engine = create_async_engine(
            cfg.url,
            echo=cfg.echo,
            connect_args={"timeout": cfg.sqlite_busy_timeout_seconds},
        )
        _install_sqlite_locking(engine)
    else:
        engine = create_async_engine(
            cfg.url,
            echo=cfg.echo,
            pool_size=cfg.pool_size,
            max_overflow=0,
            pool_timeout=cfg.pool_timeout_seconds,
            pool_recycle=cfg.pool_recycle_seconds,
            pool_pre_ping=True,
        )

    logger.info(
        "db.engine_created",
        extra={"backend": engine.dialect.name, "driver": engine.dialect.driver},
    )
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory shared by all services.

    ``expire_on_commit=False`` keeps committed attributes readable after the
    transaction ends, so results can be built without another round-trip.
    """
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
