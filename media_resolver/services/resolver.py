"""Cache-backed link issuance.

One pass per request: optional forced clear, cache lookup, sign on miss,
best-effort write-back. Concurrent misses for the same path may both sign;
the last write wins.
"""

import asyncio
from dataclasses import dataclass

from media_resolver.core.cache import LinkCache
from media_resolver.core.exceptions import CacheBackendError, ValidationError
from media_resolver.core.logging import get_logger
from media_resolver.services.signer import URLSigner

logger = get_logger(__name__)

CACHE_KEY_PREFIX = "media_cache:"


@dataclass(frozen=True)
class ResolvedLink:
    url: str
    cached: bool


def cache_key(path: str) -> str:
    """Cache key for an object path. The caller's token is not part of it."""
    return f"{CACHE_KEY_PREFIX}{path}"


class MediaResolver:
    """Composes the link cache and the URL signer."""

    def __init__(self, cache: LinkCache, signer: URLSigner):
        self.cache = cache
        self.signer = signer

    @staticmethod
    def _require_path(path: str) -> None:
        if not path:
            raise ValidationError("path", "Missing path")

    async def resolve(self, path: str, fresh: bool = False) -> ResolvedLink:
        """Return a signed URL for ``path``, from the cache when possible.

        Raises:
            ValidationError: ``path`` is empty.
            CacheBackendError: the forced clear or the lookup failed.
            SigningError: the object store could not sign the URL.
        """
        self._require_path(path)
        key = cache_key(path)

        if fresh:
            await self.cache.clear(key)

        cached = await self.cache.get(key)
        if cached is not None:
            return ResolvedLink(url=cached, cached=True)

        # boto3 may resolve credentials over the network; keep it off the event loop
        loop = asyncio.get_running_loop()
        url = await loop.run_in_executor(None, self.signer.sign, path)

        try:
            await self.cache.set(key, url)
        except CacheBackendError as e:
            # The fresh URL is still valid; only the next request pays for this.
            logger.warning("Failed to cache signed URL", key=key, backend=e.backend)

        return ResolvedLink(url=url, cached=False)

    async def refresh(self, path: str) -> None:
        """Drop the cached link for ``path`` without signing a new one."""
        self._require_path(path)
        await self.cache.clear(cache_key(path))
