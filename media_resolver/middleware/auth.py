"""Bearer token check for protected routes."""

import logging
import secrets

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from media_resolver.core.container import container

logger = logging.getLogger(__name__)

# Public routes that don't require a token
PUBLIC_PATHS = frozenset([
    "/",
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
])


class AuthMiddleware(BaseHTTPMiddleware):
    """Rejects requests whose ``token`` query parameter does not match APP_TOKEN.

    Runs before routing, so rejected requests never reach the cache or signer.
    """

    async def dispatch(self, request: Request, call_next):
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        token = request.query_params.get("token", "")
        if not token:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Token is required"}
            )

        expected = container.settings().app_token
        if not secrets.compare_digest(token.encode(), expected.encode()):
            logger.info("Rejected request with invalid token: %s", request.url.path)
            return JSONResponse(
                status_code=status.HTTP_403_FORBIDDEN,
                content={"detail": "Invalid token"}
            )

        return await call_next(request)
