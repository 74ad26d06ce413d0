"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from dashsnap import __version__
from dashsnap.api.router import api_router
from dashsnap.config import get_settings
from dashsnap.infrastructure.database.connection import dispose_engine, get_session_factory
from dashsnap.observability.metrics import setup_metrics
from dashsnap.search import build_search_index
from dashsnap.shared.exceptions import (
    DashSnapError,
    DuplicateKeyError,
    NotFoundError,
    PersistenceError,
    SearchIndexError,
    ValidationError,
)
from dashsnap.shared.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - startup and shutdown events."""
    setup_logging()
    settings = get_settings()
    logger.info("dashsnap_starting", version=__version__, search_backend=settings.search_backend)

    app.state.search_index = getattr(app.state, "search_index", None) or build_search_index(
        settings, get_session_factory()
    )

    yield

    logger.info("dashsnap_stopping")
    await app.state.search_index.close()

    redis_client = getattr(app.state, "redis_client", None)
    if redis_client is not None:
        close = getattr(redis_client, "close", None)
        if close is not None:
            await close()

    await dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="dashsnap API",
        description="Shareable dashboard snapshots with full-text search",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")

    setup_metrics(app)

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=422,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.details,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=422,
            content={
                "error": "validation_error",
                "message": "Request validation failed",
                "details": {"errors": exc.errors()},
            },
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
            },
        )

    @app.exception_handler(DuplicateKeyError)
    async def duplicate_key_handler(request: Request, exc: DuplicateKeyError) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=409,
            content={
                "error": "conflict",
                "message": exc.message,
            },
        )

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
        _ = request
        logger.error("persistence_error", error=exc.message, details=exc.details)
        return JSONResponse(
            status_code=503,
            content={
                "error": "storage_unavailable",
                "message": "Storage is temporarily unavailable, please retry",
            },
        )

    @app.exception_handler(SearchIndexError)
    async def search_index_error_handler(request: Request, exc: SearchIndexError) -> JSONResponse:
        _ = request
        logger.error("search_index_error", error=exc.message, details=exc.details)
        return JSONResponse(
            status_code=503,
            content={
                "error": "search_unavailable",
                "message": "Search is temporarily unavailable, please retry",
            },
        )

    @app.exception_handler(DashSnapError)
    async def dashsnap_error_handler(request: Request, exc: DashSnapError) -> JSONResponse:
        _ = request
        logger.error("unhandled_error", error=exc.message, details=exc.details)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": "An internal error occurred",
            },
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        _ = request
        logger.exception("unexpected_error", error=str(exc))
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": "An unexpected error occurred",
            },
        )


# Create app instance
app = create_app()
