"""
Health check endpoint.

Returns service status, version, database connectivity and storage root
availability. No authentication required.
"""
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from filetoken.api.deps import AppSettings, DBSession, get_path_resolver
from filetoken.schemas import HealthResponse, StorageRootHealth
from filetoken.services.path_resolver import FilePathResolver

router = APIRouter()


def _check_root(root: Path) -> StorageRootHealth:
    if not root.is_dir():
        return StorageRootHealth(healthy=False, message=f"Storage root is not a directory: {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        return StorageRootHealth(healthy=False, message=f"Storage root is not readable: {root}")
    return StorageRootHealth(healthy=True, message=f"Storage accessible at {root}")


@router.get(
    "/healthz",
    response_model=HealthResponse,
    summary="Health Check",
    responses={503: {"description": "Database unreachable"}},
)
async def health_check(
    db: DBSession,
    settings: AppSettings,
    resolver: Annotated[FilePathResolver, Depends(get_path_resolver)],
):
    """
    Report service health.

    - unhealthy (503): the token store cannot be queried
    - degraded: a storage root is missing or unreadable
    - healthy: everything reachable
    """
    is_production = settings.ENVIRONMENT == "production"

    try:
        await db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        # Hide error details in production
        db_status = "error" if is_production else f"error: {str(e)[:50]}"

    storage = {name: _check_root(root) for name, root in resolver.roots.items()}

    if db_status != "connected":
        overall_status = "unhealthy"
    elif not all(root.healthy for root in storage.values()):
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    response = HealthResponse(
        status=overall_status,
        service=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        database=db_status,
        storage=storage,
        timestamp=datetime.now(timezone.utc),
    )

    # 503 so load balancers can detect a dead store
    if overall_status == "unhealthy":
        return JSONResponse(status_code=503, content=response.model_dump(mode="json"))

    return response
