"""API v1 routes."""

from fastapi import APIRouter

from filetoken.api.v1.endpoints import files, health
from filetoken.core.config import settings

api_router = APIRouter()

api_router.include_router(health.router, tags=["Health"])
api_router.include_router(files.router, prefix=settings.FILE_ROUTE_PREFIX, tags=["Files"])
