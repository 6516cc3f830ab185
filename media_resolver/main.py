"""
FastAPI service issuing cached, time-limited signed URLs for objects in an
S3-compatible store.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, ORJSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from media_resolver.core.container import container
from media_resolver.core.health import get_health_status, set_startup_time
from media_resolver.core.logging import configure_logging, get_logger
from media_resolver.middleware.auth import AuthMiddleware
from media_resolver.middleware.rate_limit import RateLimitMiddleware
from media_resolver.routers import home, media

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    settings = container.settings()
    configure_logging(settings)
    set_startup_time()

    logger.info("Starting media resolver",
                cache_driver=settings.cache_driver,
                expiry_hours=settings.cache_expiry_hours)

    # Build the S3 client now so a bad endpoint fails startup, not the first request
    container.signer()

    cache = container.cache()
    await cache.startup()

    cleanup = None
    if settings.cache_driver == "sqlite" and settings.cleanup_enabled:
        cleanup = container.cleanup()
        await cleanup.start()

    logger.info("Services started successfully")
    yield

    if cleanup:
        await cleanup.stop()
    await cache.shutdown()
    logger.info("Services shutdown complete")


app = FastAPI(
    title="S3 Media Resolver",
    version="1.0.0",
    description="Cached, time-limited signed download links",
    lifespan=lifespan,
    default_response_class=ORJSONResponse
)


class CatchAllExceptionsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error("Unhandled exception", error_type=type(e).__name__,
                         path=request.url.path, exc_info=True)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"detail": "Internal server error"}
            )


# Last added runs first: rate limit, then token check, then the catch-all.
app.add_middleware(CatchAllExceptionsMiddleware)
app.add_middleware(AuthMiddleware)
app.add_middleware(RateLimitMiddleware)

app.include_router(home.router)
app.include_router(media.router)


@app.get("/health")
async def health_check():
    """Cache backend liveness and uptime."""
    return await get_health_status(container.cache(), container.settings())


if __name__ == "__main__":
    import uvicorn
    settings = container.settings()
    uvicorn.run(
        "media_resolver.main:app",
        host=settings.host,
        port=settings.server_port,
        reload=settings.debug,
        workers=1 if settings.debug else settings.workers
    )
