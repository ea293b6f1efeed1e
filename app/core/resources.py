"""Process-wide resource handles.

``Resources`` owns the database engine (with its connection pool), the session
factory and the counter store. It is built once at startup, attached to
``app.state`` and shared read-only by every request handler; ``shutdown``
drains the pools. Nothing here is created lazily on first use.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.adapters.counter_store import AbstractCounterStore, create_counter_store
from app.core.config import Settings
from app.db.bootstrap import create_schema
from app.db.session import create_engine, create_session_factory

logger = logging.getLogger(__name__)


@dataclass
class Resources:
    """Shared infrastructure handles for one process."""

    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    counter_store: AbstractCounterStore
    auto_create_schema: bool = False

    @classmethod
    def from_settings(cls, cfg: Settings) -> "Resources":
        """Construct handles from configuration without connecting yet."""
        engine = create_engine(cfg.db)
        return cls(
            engine=engine,
            session_factory=create_session_factory(engine),
            counter_store=create_counter_store(cfg.counter),
            auto_create_schema=cfg.db.auto_create_schema,
        )

    async def startup(self) -> None:
        """Prepare resources before the first request is served."""
        if self.auto_create_schema:
            await create_schema(self.engine)
        logger.info("resources.started", extra={"db_backend": self.engine.dialect.name})

    async def shutdown(self) -> None:
        """Close the counter store and dispose of pooled DB connections."""
        try:
            await self.counter_store.close()
        finally:
            await self.engine.dispose()
        logger.info("resources.stopped")

    async def check_database(self) -> bool:
        """Run a trivial query to confirm the database is reachable."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError):
            logger.warning("resources.database_unreachable", exc_info=True)
            return False
