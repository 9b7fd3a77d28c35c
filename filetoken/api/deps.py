"""API dependencies for dependency injection.

Every collaborator is built per request from injected settings and the
request-scoped session; nothing is looked up from a global registry.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from filetoken.core.config import Settings, get_settings
from filetoken.db.session import get_db
from filetoken.services.file_gateway import FileGateway
from filetoken.services.path_resolver import FilePathResolver
from filetoken.store import SQLAlchemyTokenStore, TokenStore

DBSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]


def get_token_store(db: DBSession, settings: AppSettings) -> TokenStore:
    """Token store bound to the request's session."""
    return SQLAlchemyTokenStore(db, timeout=settings.STORE_TIMEOUT_SECONDS)


def get_path_resolver(settings: AppSettings) -> FilePathResolver:
    return FilePathResolver.from_settings(settings)


def get_file_gateway(
    store: Annotated[TokenStore, Depends(get_token_store)],
    resolver: Annotated[FilePathResolver, Depends(get_path_resolver)],
    settings: AppSettings,
) -> FileGateway:
    return FileGateway(
        store,
        resolver,
        chunk_size=settings.STREAM_CHUNK_SIZE,
        cache_max_age=settings.FILE_CACHE_MAX_AGE_SECONDS,
        filesystem_timeout=settings.FILESYSTEM_TIMEOUT_SECONDS,
    )
