"""Main API router aggregating all routes."""

from fastapi import APIRouter

from dashsnap.api.routes import health, search, snapshots

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(snapshots.router)
api_router.include_router(search.router)
