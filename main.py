import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shorty_app.config import settings
from shorty_app.database.connection import engine, Base, wait_for_database
from shorty_app.dependencies import get_queue
from shorty_app.api.v1 import home, urls, redirect
from shorty_app.workers.click_worker import ClickWorker

# Import models to ensure they're registered with Base
from shorty_app.models import URL  # noqa: F401

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger("shorty")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wait for the database, create tables, run the embedded click worker"""
    wait_for_database(
        engine,
        attempts=settings.db_connect_retries,
        backoff=settings.db_connect_backoff,
    )
    Base.metadata.create_all(bind=engine)

    worker_task = None
    if settings.click_worker_enabled:
        # Same singleton queue the redirect route publishes to
        app.state.click_worker = ClickWorker(queue=get_queue())
        worker_task = asyncio.create_task(app.state.click_worker.start())

    logger.info("%s %s is running", settings.app_name, settings.app_version)
    yield

    if worker_task is not None:
        app.state.click_worker.stop()
        try:
            await asyncio.wait_for(worker_task, timeout=10)
        except asyncio.TimeoutError:
            logger.warning("Click worker did not stop in time; pending clicks may be lost")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="A URL shortener service built with FastAPI",
    debug=settings.debug,
    lifespan=lifespan,
)


@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    """Permissive CORS on every response; OPTIONS never reaches a route"""
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_204_NO_CONTENT, headers=CORS_HEADERS)

    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Flat {"error": ...} bodies instead of FastAPI's {"detail": ...}"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """The only request body is the shorten payload, whose only field is url"""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "URL is required"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
        headers=CORS_HEADERS,
    )


######## Include routers
app.include_router(urls.router, prefix="/api")
app.include_router(home.router)
# Catch-all for short codes, must stay last
app.include_router(redirect.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.app_port)
