from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse

STATIC_DIR = Path(__file__).resolve().parent.parent.parent / "static"

router = APIRouter(tags=["home"])


@router.get("/", include_in_schema=False)
def serve_index():
    """Single page frontend calling the JSON API"""
    return FileResponse(STATIC_DIR / "index.html", media_type="text/html")
