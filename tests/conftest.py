"""Shared fixtures: settings, fake collaborators and a wired TestClient."""

from typing import Dict, List, Optional

import pytest
import pytest_asyncio
from dependency_injector import providers
from starlette.testclient import TestClient

from media_resolver.core.cache import LinkCache, SQLiteLinkCache
from media_resolver.core.config import Settings
from media_resolver.core.container import container
from media_resolver.core.database import Database
from media_resolver.core.exceptions import CacheBackendError, SigningError

TOKEN = "secret"
BUCKET = "media"
ENDPOINT = "http://localhost:9000"


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        app_token=TOKEN,
        s3_bucket=BUCKET,
        s3_region="us-east-1",
        s3_endpoint=ENDPOINT,
        aws_access_key="testing",
        aws_secret_key="testing",
        cache_driver="sqlite",
        cache_expiry_hours=1,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}",
        cleanup_enabled=False,
        rate_limit_requests_per_second=1000,
        rate_limit_burst_size=1000,
        log_format="console",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeSigner:
    """Returns a distinct URL per call and records every path it signed."""

    def __init__(self):
        self.calls: List[str] = []
        self.error: Optional[SigningError] = None

    def sign(self, path: str) -> str:
        self.calls.append(path)
        if self.error:
            raise self.error
        return f"https://signed.example/{path.lstrip('/')}?sig={len(self.calls)}"


class InMemoryLinkCache(LinkCache):
    """Dict-backed cache with a controllable clock."""

    backend = "memory"

    def __init__(self, ttl: int = 3600):
        super().__init__(ttl)
        self.now = 1_700_000_000.0
        self.entries: Dict[str, tuple] = {}

    async def get(self, key):
        entry = self.entries.get(key)
        if entry is None:
            return None
        value, expiry = entry
        if self.now > expiry:
            del self.entries[key]
            return None
        return value

    async def set(self, key, value):
        self.entries[key] = (value, int(self.now + self.ttl))

    async def clear(self, key):
        self.entries.pop(key, None)

    async def ping(self):
        return True


class RecordingCache(LinkCache):
    """Wraps a real cache, counting calls and optionally failing operations."""

    def __init__(self, inner: LinkCache):
        super().__init__(inner.ttl)
        self.inner = inner
        self.backend = inner.backend
        self.calls: Dict[str, int] = {"get": 0, "set": 0, "clear": 0}
        self.fail: set = set()

    async def startup(self):
        await self.inner.startup()

    async def shutdown(self):
        await self.inner.shutdown()

    def _record(self, op, key):
        self.calls[op] += 1
        if op in self.fail:
            raise CacheBackendError(self.backend, op, key)

    async def get(self, key):
        self._record("get", key)
        return await self.inner.get(key)

    async def set(self, key, value):
        self._record("set", key)
        await self.inner.set(key, value)

    async def clear(self, key):
        self._record("clear", key)
        await self.inner.clear(key)

    async def ping(self):
        return await self.inner.ping()


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest_asyncio.fixture
async def database(settings):
    db = Database(settings)
    await db.startup()
    yield db
    await db.shutdown()


@pytest.fixture
def signer():
    return FakeSigner()


@pytest.fixture
def wired(settings, signer):
    """Override container providers with test collaborators."""
    cache = RecordingCache(SQLiteLinkCache(settings, Database(settings)))
    container.reset_singletons()
    container.settings.override(providers.Object(settings))
    container.cache.override(providers.Object(cache))
    container.signer.override(providers.Object(signer))
    yield cache
    container.settings.reset_override()
    container.cache.reset_override()
    container.signer.reset_override()
    container.reset_singletons()


@pytest.fixture
def client(wired):
    from media_resolver.main import app

    with TestClient(app, follow_redirects=False) as c:
        yield c
