"""Link cache with Redis or SQLite backend.

Both variants store ``cache key -> signed URL`` with the configured expiry
window. The variant is chosen once from ``CACHE_DRIVER`` and fixed for the
life of the process; callers depend only on :class:`LinkCache`.

A miss is reported as ``None``. Anything else that goes wrong inside a
backend is raised as :class:`CacheBackendError` so callers can tell a broken
connection apart from an empty slot.
"""

import time
from abc import ABC, abstractmethod
from typing import Callable, Optional, TYPE_CHECKING

import redis.asyncio as redis
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from media_resolver.core.config import Settings
from media_resolver.core.exceptions import CacheBackendError, ConfigurationError
from media_resolver.core.logging import get_logger, log_cache_operation

if TYPE_CHECKING:
    from media_resolver.core.database import Database

logger = get_logger(__name__)


class LinkCache(ABC):
    """Key-value store for issued links."""

    backend: str = "abstract"

    def __init__(self, ttl: int):
        self.ttl = ttl

    async def startup(self) -> None:
        """Open backend connections."""

    async def shutdown(self) -> None:
        """Close backend connections."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Insert or overwrite ``key`` with an expiry of now + ttl."""

    @abstractmethod
    async def clear(self, key: str) -> None:
        """Remove ``key``. Removing an absent key is not an error."""

    @abstractmethod
    async def ping(self) -> bool:
        """Check backend connectivity."""


class RedisLinkCache(LinkCache):
    """Redis backend. Expiry is enforced by Redis itself (``SET .. EX``)."""

    backend = "redis"

    def __init__(self, settings: Settings, client: Optional[redis.Redis] = None):
        super().__init__(settings.cache_expiry_seconds)
        self.settings = settings
        self.redis = client

    async def startup(self) -> None:
        """Connect and ping. An unreachable Redis is fatal at startup."""
        if self.redis is None:
            self.redis = redis.from_url(
                self.settings.redis_url,
                password=self.settings.redis_password,
                encoding="utf-8",
                decode_responses=True,
                socket_timeout=5,
                socket_connect_timeout=5,
            )
        await self.redis.ping()
        logger.info("Redis cache initialized", host=self.settings.redis_host, db=self.settings.redis_db)

    async def shutdown(self) -> None:
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            logger.info("Redis cache connections closed")

    def _client(self) -> redis.Redis:
        if self.redis is None:
            raise RuntimeError("Redis cache not initialized")
        return self.redis

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._client().get(key)
        except RedisError as e:
            logger.error("Cache get failed", backend=self.backend, key=key, error=str(e))
            raise CacheBackendError(self.backend, "get", key) from e
        log_cache_operation(logger, "get", key, hit=value is not None)
        return value

    async def set(self, key: str, value: str) -> None:
        try:
            await self._client().set(key, value, ex=self.ttl)
        except RedisError as e:
            raise CacheBackendError(self.backend, "set", key) from e
        log_cache_operation(logger, "set", key, ttl=self.ttl)

    async def clear(self, key: str) -> None:
        try:
            deleted = await self._client().delete(key)
        except RedisError as e:
            logger.error("Cache clear failed", backend=self.backend, key=key, error=str(e))
            raise CacheBackendError(self.backend, "clear", key) from e
        log_cache_operation(logger, "clear", key, deleted=bool(deleted))

    async def ping(self) -> bool:
        try:
            return bool(await self._client().ping())
        except (RedisError, RuntimeError):
            return False


class SQLiteLinkCache(LinkCache):
    """SQLite backend over the ``cache`` table.

    Expiry lives in the ``expiry`` column and is checked on read; an expired
    row is deleted by the read that finds it.
    """

    backend = "sqlite"

    def __init__(self, settings: Settings, database: "Database",
                 clock: Callable[[], float] = time.time):
        super().__init__(settings.cache_expiry_seconds)
        self.database = database
        self.clock = clock

    async def startup(self) -> None:
        await self.database.startup()
        logger.info("Using SQLite cache", url=self.database.settings.database_url)

    async def shutdown(self) -> None:
        await self.database.shutdown()

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self.database.get_cache_entry(key, now=self.clock())
        except SQLAlchemyError as e:
            logger.error("Cache get failed", backend=self.backend, key=key, error=str(e))
            raise CacheBackendError(self.backend, "get", key) from e
        log_cache_operation(logger, "get", key, hit=value is not None)
        return value

    async def set(self, key: str, value: str) -> None:
        try:
            expiry = await self.database.set_cache_entry(key, value, self.ttl, now=self.clock())
        except SQLAlchemyError as e:
            raise CacheBackendError(self.backend, "set", key) from e
        log_cache_operation(logger, "set", key, ttl=self.ttl, expiry=expiry)

    async def clear(self, key: str) -> None:
        try:
            deleted = await self.database.delete_cache_entry(key)
        except SQLAlchemyError as e:
            logger.error("Cache clear failed", backend=self.backend, key=key, error=str(e))
            raise CacheBackendError(self.backend, "clear", key) from e
        log_cache_operation(logger, "clear", key, deleted=deleted)

    async def ping(self) -> bool:
        try:
            async with self.database.get_session() as session:
                from sqlalchemy import text
                await session.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, RuntimeError):
            return False


def create_link_cache(settings: Settings, database: "Database") -> LinkCache:
    """Build the cache variant selected by ``settings.cache_driver``."""
    if settings.cache_driver == "redis":
        return RedisLinkCache(settings)
    if settings.cache_driver == "sqlite":
        return SQLiteLinkCache(settings, database)
    raise ConfigurationError(f"Invalid cache driver: {settings.cache_driver!r}")
