from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from shorty_app.config import settings
from shorty_app.dependencies import get_url_service
from shorty_app.exceptions import ShortCodeGenerationError, StorageError
from shorty_app.schemas.url import ShortenRequest, ShortenResponse, URLRecord, URLStats
from shorty_app.services.url_service import URLService

router = APIRouter(tags=["urls"])


def build_short_url(request: Request, short_code: str) -> str:
    """Absolute short URL; honours BASE_URL, then TLS / X-Forwarded-Proto"""
    if settings.base_url:
        return f"{settings.base_url.rstrip('/')}/{short_code}"

    scheme = "http"
    if request.url.scheme == "https" or request.headers.get("x-forwarded-proto") == "https":
        scheme = "https"
    host = request.headers.get("host") or request.url.netloc
    return f"{scheme}://{host}/{short_code}"


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"model": ShortenResponse, "description": "URL was already shortened"}}
)
def create_short_url(
    payload: ShortenRequest,
    request: Request,
    response: Response,
    url_service: URLService = Depends(get_url_service)
):
    """Shorten a URL; returns the existing code (200) if it was shortened before"""
    try:
        url, created = url_service.shorten(payload.url)
    except ShortCodeGenerationError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate short code"
        )
    except StorageError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save URL"
        )

    if not created:
        response.status_code = status.HTTP_200_OK

    return ShortenResponse(
        short_url=build_short_url(request, url.short_code),
        short_code=url.short_code,
        original_url=url.original_url,
    )


@router.get("/stats/{short_code}", response_model=URLStats)
def get_url_stats(
    short_code: str,
    url_service: URLService = Depends(get_url_service)
):
    """Click statistics for a short code"""
    url = url_service.get_url_stats(short_code)
    if not url:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="URL not found"
        )
    return url


@router.get("/urls", response_model=List[URLRecord])
def list_urls(url_service: URLService = Depends(get_url_service)):
    """The most recently created links, newest first"""
    try:
        return url_service.list_recent()
    except StorageError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch URLs"
        )


@router.get("/health")
def health_check(url_service: URLService = Depends(get_url_service)):
    """Database reachability probe"""
    if not url_service.is_healthy():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "error": "Database connection failed"}
        )
    return {"status": "healthy"}
