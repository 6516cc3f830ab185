"""Admission control ahead of every other middleware."""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from media_resolver.core.container import container

# Health checks must not drain the bucket
EXEMPT_PATHS = frozenset(["/health"])


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Answers 429 when the shared token bucket is empty."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        if not container.rate_limiter().allow():
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Too many requests, please try again later."}
            )

        return await call_next(request)
