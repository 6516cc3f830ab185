"""Dependency injection container for the application."""

from dependency_injector import containers, providers

from media_resolver.core.cache import create_link_cache
from media_resolver.core.cleanup import CleanupService
from media_resolver.core.config import Settings
from media_resolver.core.database import Database
from media_resolver.core.rate_limit import TokenBucket
from media_resolver.services.resolver import MediaResolver
from media_resolver.services.signer import URLSigner


class Container(containers.DeclarativeContainer):
    """Application dependency injection container."""

    settings = providers.Singleton(
        Settings,
    )

    # Only used by the SQLite cache variant
    database = providers.Singleton(
        Database,
        settings=settings
    )

    # Redis or SQLite, chosen by CACHE_DRIVER
    cache = providers.Singleton(
        create_link_cache,
        settings=settings,
        database=database
    )

    signer = providers.Singleton(
        URLSigner,
        settings=settings
    )

    resolver = providers.Singleton(
        MediaResolver,
        cache=cache,
        signer=signer
    )

    rate_limiter = providers.Singleton(
        TokenBucket,
        rate=settings.provided.rate_limit_requests_per_second,
        burst=settings.provided.rate_limit_burst_size
    )

    cleanup = providers.Singleton(
        CleanupService,
        database=database,
        settings=settings
    )


# Global container instance
container = Container()
