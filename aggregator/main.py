"""Blog aggregator FastAPI application entrypoint."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pythonjsonlogger.json import JsonFormatter
from starlette.exceptions import HTTPException as StarletteHTTPException

from aggregator.application import build_application
from aggregator.config import get_settings
from aggregator.routers import feed_follows, feeds, posts, users
from aggregator.scheduler import start_scheduler, stop_scheduler
from aggregator.store import ConflictError, NotFoundError, StoreError

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _configure_logging() -> None:
    """Configure root logger based on ENV (dev=DEBUG, prod=INFO) and LOG_FORMAT."""
    settings = get_settings()
    level = logging.DEBUG if settings.env != "prod" else logging.INFO
    handler = logging.StreamHandler()
    if settings.log_format == "json":
        handler.setFormatter(
            JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    else:
        handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%H:%M:%S"))
    logging.basicConfig(level=level, handlers=[handler], force=True)


_configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup/shutdown lifecycle."""
    settings = get_settings()
    application = build_application(settings)
    app.state.application = application

    scheduler = None
    if settings.enable_internal_scheduler:
        scheduler = start_scheduler(application.feed_scheduler, settings.scheduler)
    else:
        logger.info("Internal scheduler disabled by configuration")

    try:
        yield
    finally:
        if scheduler is not None:
            stop_scheduler(scheduler)
        await application.aclose()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _http_exception_handler(
    _request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _validation_exception_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    return _error(status.HTTP_400_BAD_REQUEST, message)


async def _store_exception_handler(_request: Request, exc: StoreError) -> JSONResponse:
    if isinstance(exc, NotFoundError):
        return _error(status.HTTP_404_NOT_FOUND, str(exc) or "Not found")
    if isinstance(exc, ConflictError):
        return _error(status.HTTP_409_CONFLICT, str(exc) or "Already exists")
    logger.error("Store error: %s", exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title="Blog Aggregator",
        description="Multi-tenant RSS aggregation service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StoreError, _store_exception_handler)

    app.include_router(users.router)
    app.include_router(feeds.router)
    app.include_router(feed_follows.router)
    app.include_router(posts.router)

    return app


app = create_app()


@app.get("/healthz")
async def health_check() -> dict[str, str]:
    """Return application health status."""
    return {"status": "ok"}


@app.get("/v1/err")
async def error_check() -> JSONResponse:
    """Return the standard error envelope, for client smoke tests."""
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")
