"""Health check endpoints."""

import logging
from typing import Any, cast

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy import literal, select
from sqlalchemy.ext.asyncio import AsyncSession

from dashsnap.config import get_settings
from dashsnap.infrastructure.database.connection import get_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str
    search_backend: str


class ReadyResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    checks: dict[str, bool]


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check - always returns OK if service is running."""
    from dashsnap import __version__

    return HealthResponse(
        status="healthy",
        version=__version__,
        database="not_checked",
        search_backend=get_settings().search_backend,
    )


@router.get("/ready", response_model=ReadyResponse)
async def readiness_check(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> ReadyResponse:
    """Readiness check - verifies the database and the sweep worker's Redis."""
    checks: dict[str, bool] = {}

    try:
        await session.execute(select(literal(1)))
        checks["database"] = True
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        checks["database"] = False

    try:
        import redis.asyncio as redis

        redis_client = getattr(request.app.state, "redis_client", None)
        if redis_client is None:
            redis_client = cast(Any, redis.from_url)(str(get_settings().redis_url))
            request.app.state.redis_client = redis_client
        await redis_client.ping()
        checks["redis"] = True
    except Exception as e:
        logger.warning(f"Redis health check failed: {e}")
        checks["redis"] = False

    return ReadyResponse(ready=all(checks.values()), checks=checks)
