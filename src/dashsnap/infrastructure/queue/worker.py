"""Background worker using ARQ (async Redis queue).

Jobs:
- delete_expired_snapshots_job: sweep expired snapshots (cron)

Run with: arq dashsnap.infrastructure.queue.worker.WorkerSettings
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import cast

from arq import cron
from arq.connections import RedisSettings
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dashsnap.config import Settings, get_settings
from dashsnap.infrastructure.database.connection import dispose_engine, get_session_factory
from dashsnap.infrastructure.snapshot_store import build_snapshot_store
from dashsnap.search import SearchIndex, build_search_index
from dashsnap.shared.logging import get_logger, setup_logging

logger = get_logger(__name__)


@dataclass
class JobContext:
    settings: Settings
    session_factory: async_sessionmaker[AsyncSession]
    search_index: SearchIndex


# ----- Job Functions -----


async def delete_expired_snapshots_job(ctx: dict[str, object]) -> dict[str, object]:
    """Delete every snapshot whose expiry has passed.

    Overlapping runs are harmless: each sweep is a single conditional delete.
    """
    logger.info("job_started", job="delete_expired_snapshots")

    try:
        job_ctx = cast(JobContext, ctx["job_context"])
        now = datetime.now(UTC)

        async with job_ctx.session_factory() as session:
            store = build_snapshot_store(session, job_ctx.search_index, job_ctx.settings)
            deleted_count = await store.delete_expired(now)

        logger.info(
            "job_completed",
            job="delete_expired_snapshots",
            deleted_count=deleted_count,
        )
        return {"status": "completed", "deleted_count": deleted_count}

    except Exception as e:
        logger.exception(
            "job_failed",
            job="delete_expired_snapshots",
            error=str(e),
        )
        return {"status": "failed", "error": str(e)}


# ----- Worker Settings -----


async def startup(ctx: dict[str, object]) -> None:
    """Initialize worker resources on startup."""
    setup_logging()
    logger.info("worker_starting")

    settings = get_settings()
    session_factory = get_session_factory(settings)
    ctx["job_context"] = JobContext(
        settings=settings,
        session_factory=session_factory,
        search_index=build_search_index(settings, session_factory),
    )

    logger.info("worker_started")


async def shutdown(ctx: dict[str, object]) -> None:
    """Clean up worker resources on shutdown."""
    logger.info("worker_stopping")
    job_ctx = ctx.get("job_context")
    if isinstance(job_ctx, JobContext):
        await job_ctx.search_index.close()
    await dispose_engine()
    logger.info("worker_stopped")


def get_redis_settings() -> RedisSettings:
    """Get Redis settings from app config."""
    settings = get_settings()
    return RedisSettings.from_dsn(str(settings.redis_url))


def sweep_minutes(interval_minutes: int) -> set[int]:
    """Minutes of the hour at which the expiry sweep runs.

    ``interval_minutes`` divides 60 (enforced by Settings), so runs are evenly
    spaced across the hour boundary.
    """
    return set(range(0, 60, interval_minutes))


class WorkerSettings:
    """ARQ worker settings."""

    functions = [delete_expired_snapshots_job]

    # Redis connection - must be a RedisSettings instance, not a method
    redis_settings = get_redis_settings()

    # Lifecycle hooks
    on_startup = startup
    on_shutdown = shutdown

    # Worker config
    max_jobs = 10
    job_timeout = 300  # 5 minutes max per job
    keep_result = 3600  # Keep results for 1 hour

    cron_jobs = [
        cron(
            delete_expired_snapshots_job,
            minute=sweep_minutes(get_settings().expired_sweep_interval_minutes),
            run_at_startup=True,
        ),
    ]
