"""Signed link routes."""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse

from media_resolver.core.container import container
from media_resolver.core.exceptions import CacheBackendError, SigningError, ValidationError
from media_resolver.core.logging import get_logger
from media_resolver.services.resolver import MediaResolver

logger = get_logger(__name__)
router = APIRouter(prefix="/media", tags=["media"])

_CACHE_ERROR_MESSAGES = {
    "clear": "Failed to clear cache",
    "get": "Failed to read cache",
}


def _cache_error(e: CacheBackendError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=_CACHE_ERROR_MESSAGES.get(e.operation, "Cache error")
    )


@router.get("")
async def get_media(
    path: str = "",
    fresh: str = "",
    resolver: MediaResolver = Depends(lambda: container.resolver())
):
    """Redirect to a signed URL for ``path``; ``fresh=1`` bypasses the cache."""
    try:
        link = await resolver.resolve(path, fresh=fresh == "1")
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CacheBackendError as e:
        raise _cache_error(e)
    except SigningError as e:
        logger.error("Failed to sign URL", object_key=e.key, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate signed URL"
        )

    logger.debug("Resolved media link", path=path, cached=link.cached)
    return RedirectResponse(link.url, status_code=status.HTTP_302_FOUND)


@router.get("/refresh")
async def refresh_media(
    path: str = "",
    resolver: MediaResolver = Depends(lambda: container.resolver())
):
    """Drop the cached link for ``path``."""
    try:
        await resolver.refresh(path)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CacheBackendError as e:
        raise _cache_error(e)

    return {"message": "Cache cleared successfully"}
