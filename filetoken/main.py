"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from filetoken.api.v1 import api_router
from filetoken.core.config import settings
from filetoken.core.logging_config import configure_logging
from filetoken.core.middleware import (
    TokenRouteHeadersMiddleware,
    install_token_redaction_logging,
    redact_token_from_path,
)
from filetoken.db.session import Base, engine
from filetoken.services.errors import ERROR_RESPONSES, ErrorKind

# Import models so they're registered with Base.metadata
from filetoken.models import file_token  # noqa: F401

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    configure_logging(settings)
    install_token_redaction_logging(settings.FILE_ROUTE_PREFIX)

    logger.info(
        f"Starting {settings.APP_NAME} v{settings.APP_VERSION}",
        extra={"event_type": "system.startup", "environment": settings.ENVIRONMENT},
    )

    # Only auto-create tables in development/local environments
    # In production, use Alembic migrations: alembic upgrade head
    if settings.ENVIRONMENT in ("local", "development", "dev"):
        logger.warning("Auto-creating database tables (development mode)")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    yield

    logger.info("Shutting down", extra={"event_type": "system.shutdown"})
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Serves stored files behind short-lived access tokens",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url=None,
    lifespan=lifespan,
)

# Keeps tokens out of Referer headers on the file route
app.add_middleware(TokenRouteHeadersMiddleware, route_prefix=settings.FILE_ROUTE_PREFIX)

app.include_router(api_router)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions without leaking internal detail."""
    logger.error(
        f"Unhandled exception: {exc}",
        exc_info=True,
        extra={
            "event_type": "system.unhandled_exception",
            "path": redact_token_from_path(request.url.path, settings.FILE_ROUTE_PREFIX),
        },
    )
    status_code, message = ERROR_RESPONSES[ErrorKind.INTERNAL_ERROR]
    return PlainTextResponse(message, status_code=status_code)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "filetoken.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT in ("local", "development", "dev"),
        log_level=settings.LOG_LEVEL.lower(),
    )
