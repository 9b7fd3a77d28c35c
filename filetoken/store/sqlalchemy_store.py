"""
SQLAlchemy token store.

Every query is built with bound parameters; no caller input is ever
interpolated into SQL.
"""
import asyncio
from typing import Awaitable, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import FileToken
from ..services.errors import StoreError
from .interfaces import TokenStore

T = TypeVar("T")


class SQLAlchemyTokenStore(TokenStore):
    """Token store backed by the ``filetoken_list`` table."""

    def __init__(self, session: AsyncSession, timeout: Optional[float] = None):
        """
        Args:
            session: Request-scoped database session
            timeout: Per-call timeout in seconds (None waits indefinitely)
        """
        self._session = session
        self._timeout = timeout

    async def _run(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise StoreError(f"{operation} (timed out after {self._timeout}s)", e)
        except SQLAlchemyError as e:
            raise StoreError(operation, e)

    async def find_by_reference(
        self,
        file_reference: str,
        owner_entity_id: int,
        valid_at: Optional[int] = None
    ) -> Optional[FileToken]:
        stmt = (
            select(FileToken)
            .where(
                FileToken.image_url == file_reference,
                FileToken.entity_id == owner_entity_id,
            )
            .order_by(FileToken.exp_timestamp.desc())
            .limit(1)
        )
        if valid_at is not None:
            stmt = stmt.where(FileToken.exp_timestamp > valid_at)

        result = await self._run("lookup by reference", self._session.execute(stmt))
        return result.scalar_one_or_none()

    async def find_by_token(self, token: str) -> Optional[FileToken]:
        stmt = select(FileToken).where(FileToken.token == token)
        result = await self._run("lookup by token", self._session.execute(stmt))
        return result.scalar_one_or_none()

    async def insert(self, record: FileToken) -> None:
        self._session.add(record)
        try:
            await self._run("insert", self._session.commit())
        except StoreError:
            await self._run("rollback", self._session.rollback())
            raise
