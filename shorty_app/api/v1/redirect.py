from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Response, status

from shorty_app.dependencies import get_url_service
from shorty_app.services.url_service import URLService

router = APIRouter(tags=["redirect"])


def location_header(url: str) -> str:
    """Percent-encode only non-ASCII characters; the rest is sent as stored"""
    if url.isascii():
        return url
    return ''.join(char if char.isascii() else quote(char, safe='') for char in url)


@router.get("/{short_code}")
async def redirect_to_original_url(
    short_code: str,
    url_service: URLService = Depends(get_url_service)
):
    """
    Permanent redirect to the original URL.

    Flow:
    1. Paths with a dot (favicon.ico, robots.txt, ...) are 404 without a lookup
    2. Look up the original URL
    3. Publish a click event (the worker increments `clicks` later)
    4. Redirect without waiting for the click to be stored

    RedirectResponse is not used: it re-quotes characters such as | { } and
    spaces, so the Location would differ from the stored URL.
    """
    if "." in short_code:
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    original_url = url_service.get_original_url_for_redirect(short_code)
    if not original_url:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Short URL not found"
        )

    await url_service.record_click(short_code)

    return Response(
        status_code=status.HTTP_301_MOVED_PERMANENTLY,
        headers={"Location": location_header(original_url)}
    )
