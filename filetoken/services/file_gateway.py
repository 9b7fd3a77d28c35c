"""
File gateway: token in, file bytes out.

Pipeline per request (no retries):
1. Look the token up in the store
2. Reject it once its expiry has passed
3. Resolve the stored reference to a path inside a storage root
4. Check the path is a regular file
5. Sniff the content type and stream the file in chunks

Every failure becomes an ErrorResult; nothing raises out of
``resolve_and_stream``.
"""
import asyncio
import logging
import os
import time
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import AsyncIterator, Callable, Dict, Optional, TypeVar, Union
from urllib.parse import quote

from ..core.config import Settings
from ..store import TokenStore
from .content_type import detect_content_type
from .errors import (
    ERROR_RESPONSES,
    ErrorKind,
    FileNotFoundInStorageError,
    TokenExpiredError,
    TokenNotFoundError,
)
from .path_resolver import FilePathResolver

logger = logging.getLogger(__name__)

T = TypeVar("T")


def content_disposition(filename: str) -> str:
    """
    Inline Content-Disposition for a file name (RFC 6266).

    Header values must be Latin-1, so the quoted ``filename`` is an ASCII
    fallback and the real name travels percent-encoded in ``filename*``.
    """
    fallback = "".join(
        c if " " <= c <= "~" and c not in '"\\' else "_"
        for c in filename
    )
    if fallback == filename:
        return f'inline; filename="{filename}"'
    return f"inline; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='', errors='surrogateescape')}"


@dataclass
class FileResult:
    """A file ready to be streamed to the client."""
    path: Path
    content_type: str
    content_length: int
    chunk_size: int = 64 * 1024
    cache_max_age: int = 3600
    read_timeout: Optional[float] = None

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": self.content_type,
            "Content-Disposition": content_disposition(self.filename),
            "Content-Length": str(self.content_length),
            "Cache-Control": f"public, max-age={self.cache_max_age}",
            "Accept-Ranges": "bytes",
        }

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """Yield the file contents chunk by chunk without blocking the loop."""
        loop = asyncio.get_running_loop()
        f = await loop.run_in_executor(None, self.path.open, "rb")
        try:
            while True:
                chunk = await asyncio.wait_for(
                    loop.run_in_executor(None, f.read, self.chunk_size),
                    timeout=self.read_timeout,
                )
                if not chunk:
                    break
                yield chunk
        finally:
            await loop.run_in_executor(None, f.close)


@dataclass
class ErrorResult:
    """A rejected request, safe to show to the client."""
    kind: ErrorKind

    @property
    def status_code(self) -> int:
        return ERROR_RESPONSES[self.kind][0]

    @property
    def message(self) -> str:
        return ERROR_RESPONSES[self.kind][1]


GatewayResult = Union[FileResult, ErrorResult]


class FileGateway:
    """Serves files for valid, unexpired tokens."""

    def __init__(
        self,
        store: TokenStore,
        resolver: FilePathResolver,
        chunk_size: int = 64 * 1024,
        cache_max_age: int = 3600,
        filesystem_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            store: Token store shared with the issuer
            resolver: Maps references to paths inside storage roots
            chunk_size: Bytes per streamed chunk
            cache_max_age: max-age advertised to clients, in seconds
            filesystem_timeout: Per-call timeout for disk access in seconds
            clock: Source of the current unix time
        """
        self._store = store
        self._resolver = resolver
        self._chunk_size = chunk_size
        self._cache_max_age = cache_max_age
        self._filesystem_timeout = filesystem_timeout
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        store: TokenStore,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ) -> "FileGateway":
        return cls(
            store,
            FilePathResolver.from_settings(settings),
            chunk_size=settings.STREAM_CHUNK_SIZE,
            cache_max_age=settings.FILE_CACHE_MAX_AGE_SECONDS,
            filesystem_timeout=settings.FILESYSTEM_TIMEOUT_SECONDS,
            clock=clock,
        )

    async def resolve_and_stream(self, token: str) -> GatewayResult:
        """
        Resolve a token to a streamable file.

        Returns:
            FileResult on success, ErrorResult otherwise
        """
        try:
            return await self._resolve(token)

        except TokenNotFoundError:
            self._log_error(token, "", "Token not found")
            return ErrorResult(ErrorKind.TOKEN_NOT_FOUND)

        except TokenExpiredError:
            self._log_error(token, "", "Token expired")
            return ErrorResult(ErrorKind.TOKEN_EXPIRED)

        except FileNotFoundInStorageError as e:
            self._log_error(token, e.path, e.reason)
            return ErrorResult(ErrorKind.FILE_NOT_FOUND)

        except Exception as e:
            logger.error(
                f"Error serving file for token {token}: {e}",
                exc_info=True,
                extra={
                    "event_type": "filetoken.serve.internal_error",
                    "token": token,
                    "error": str(e),
                },
            )
            return ErrorResult(ErrorKind.INTERNAL_ERROR)

    async def _resolve(self, token: str) -> FileResult:
        record = await self._store.find_by_token(token)
        if record is None:
            raise TokenNotFoundError(token)

        if record.is_expired_at(self._clock()):
            raise TokenExpiredError(token)

        # Canonicalizing follows symlinks, so it touches the disk too
        resolved = await self._run_fs(partial(self._resolver.resolve, record.image_url))
        path = resolved.path

        if not await self._run_fs(path.is_file):
            raise FileNotFoundInStorageError(str(path))

        stat = await self._run_fs(partial(os.stat, path))
        content_type = await self._run_fs(partial(detect_content_type, path))

        return FileResult(
            path=path,
            content_type=content_type,
            content_length=stat.st_size,
            chunk_size=self._chunk_size,
            cache_max_age=self._cache_max_age,
            read_timeout=self._filesystem_timeout,
        )

    async def _run_fs(self, func: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        return await asyncio.wait_for(
            loop.run_in_executor(None, func),
            timeout=self._filesystem_timeout,
        )

    def _log_error(self, token: str, path: str, error: str) -> None:
        logger.error(
            f"Error with token {token}, path {path}: {error}",
            extra={
                "event_type": "filetoken.serve.rejected",
                "token": token,
                "path": path,
                "reason": error,
            },
        )
