"""Async database service with SQLModel and SQLAlchemy 2.0."""

import time
from typing import Optional
from contextlib import asynccontextmanager

from sqlalchemy import delete
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel, select

from media_resolver.core.config import Settings
from media_resolver.core.logging import get_logger
from media_resolver.models.cache import CacheEntry

logger = get_logger(__name__)


class Database:
    """Async database service with SQLModel.

    Exceptions from SQLAlchemy propagate to the caller; ``SQLiteLinkCache``
    decides how they are reported.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine = None
        self.async_session = None

    async def startup(self):
        """Initialize database connection and create tables."""
        try:
            self.engine = create_async_engine(
                self.settings.database_url,
                echo=self.settings.database_echo,
                connect_args={"timeout": 30},
            )

            self.async_session = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False
            )

            async with self.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)

            logger.info("Database initialized successfully")

        except Exception as e:
            logger.error("Database startup failed", error=str(e))
            raise

    async def shutdown(self):
        """Close database connections."""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.async_session = None
            logger.info("Database connections closed")

    @asynccontextmanager
    async def get_session(self):
        """Get async database session."""
        if not self.async_session:
            raise RuntimeError("Database not initialized")

        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    # ============================================================================
    # Cache Entries
    # ============================================================================

    async def get_cache_entry(self, key: str, now: Optional[float] = None) -> Optional[str]:
        """Get cache value by key. Returns None if expired or not found.

        An expired row is deleted in the same session before returning;
        the delete is conditional on expiry, so a concurrent upsert is kept.
        """
        now = time.time() if now is None else now
        async with self.get_session() as session:
            stmt = select(CacheEntry).where(CacheEntry.key == key)
            result = await session.execute(stmt)
            entry = result.scalar_one_or_none()

            if not entry:
                return None

            if now > entry.expiry:
                await self._delete_expired(session, key, now)
                return None

            return entry.value

    async def _delete_expired(self, session, key: str, now: float) -> bool:
        # Conditional on expiry so a row re-set since the SELECT survives
        result = await session.execute(
            delete(CacheEntry).where(CacheEntry.key == key, CacheEntry.expiry < now)
        )
        await session.commit()
        return bool(result.rowcount)

    async def delete_expired_cache_entry(self, key: str, now: Optional[float] = None) -> bool:
        """Delete ``key`` only if its stored expiry has passed."""
        now = time.time() if now is None else now
        async with self.get_session() as session:
            return await self._delete_expired(session, key, now)

    async def set_cache_entry(self, key: str, value: str, ttl: int,
                              now: Optional[float] = None) -> int:
        """Insert or replace a cache entry. Returns the stored expiry."""
        now = time.time() if now is None else now
        expiry = int(now + ttl)

        stmt = sqlite_insert(CacheEntry).values(key=key, value=value, expiry=expiry)
        stmt = stmt.on_conflict_do_update(
            index_elements=["key"],
            set_={"value": stmt.excluded["value"], "expiry": stmt.excluded["expiry"]},
        )

        async with self.get_session() as session:
            await session.execute(stmt)
            await session.commit()
        return expiry

    async def delete_cache_entry(self, key: str) -> bool:
        """Delete cache entry by key. Returns whether a row was removed."""
        async with self.get_session() as session:
            result = await session.execute(delete(CacheEntry).where(CacheEntry.key == key))
            await session.commit()
            return bool(result.rowcount)

    async def cleanup_expired_cache(self, now: Optional[float] = None) -> int:
        """Remove all expired cache entries. Returns count deleted."""
        now = time.time() if now is None else now
        async with self.get_session() as session:
            result = await session.execute(
                delete(CacheEntry).where(CacheEntry.expiry < int(now))
            )
            await session.commit()
            count = result.rowcount or 0
            if count > 0:
                logger.info("Cleaned up expired cache entries", count=count)
            return count
