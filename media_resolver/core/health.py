"""Health check utilities for the /health endpoint."""
import time
from typing import Dict, Any, TYPE_CHECKING

if TYPE_CHECKING:
    from media_resolver.core.cache import LinkCache
    from media_resolver.core.config import Settings

# Module-level startup time tracking
_startup_time: float = 0.0


def set_startup_time() -> None:
    """Record the application startup time. Call once during lifespan startup."""
    global _startup_time
    _startup_time = time.time()


def get_uptime() -> float:
    """Get uptime in seconds since startup."""
    return time.time() - _startup_time if _startup_time else 0.0


async def get_health_status(cache: "LinkCache", settings: "Settings") -> Dict[str, Any]:
    """Get health status for /health endpoint.

    Connection strings and hosts are not included.
    """
    cache_healthy = await cache.ping()

    return {
        "status": "healthy" if cache_healthy else "degraded",
        "uptime_seconds": round(get_uptime(), 1),
        "checks": {
            "cache": cache_healthy,
        },
        "cache_driver": settings.cache_driver,
        "expiry_seconds": settings.cache_expiry_seconds,
    }
