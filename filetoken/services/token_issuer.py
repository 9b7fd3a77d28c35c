"""
Token issuance for stored files.

Used by rendering code that needs a link to a file: it asks for a token for
(file reference, owning entity) and embeds the resulting URL in its output.

Issuance is lookup-then-insert and is not atomic. Two concurrent requests
for the same pair can both miss the lookup and insert two tokens; both are
valid and resolve to the same file.
"""
import logging
import re
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from ..core.config import TOKEN_ALPHABET, Settings
from ..models import FileToken
from ..store import TokenStore
from .errors import StoreError

logger = logging.getLogger(__name__)

# Everything outside the URL-safe character set is dropped from references
_URL_UNSAFE = re.compile(r"[^A-Za-z0-9$\-_.+!*'(),{}|\\^~\[\]`<>#%\";/?:@&=]")


def sanitize_file_reference(file_reference: str) -> str:
    """Reduce a file reference to URL-safe characters."""
    return _URL_UNSAFE.sub("", file_reference)


def generate_token(now: int, length: int) -> str:
    """Unix timestamp followed by ``length`` CSPRNG-chosen alphanumerics."""
    random_part = "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))
    return f"{now}{random_part}"


@dataclass
class IssuedToken:
    """Result of an issuance request."""
    token: str
    expires_at: datetime
    reused: bool = False
    # False when the record could not be stored; the token will not resolve
    durable: bool = True


class TokenIssuer:
    """Returns an existing token for a file/entity pair or creates one."""

    def __init__(
        self,
        store: TokenStore,
        ttl_seconds: int,
        token_length: int,
        file_url_base: str,
        reissue_expired: bool = False,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            store: Token store shared with the gateway
            ttl_seconds: Default lifetime of new tokens
            token_length: Length of the random part of new tokens
            file_url_base: Prefix the token is appended to in links
            reissue_expired: Ignore expired tokens when looking up a pair
            clock: Source of the current unix time
        """
        self._store = store
        self._ttl_seconds = ttl_seconds
        self._token_length = token_length
        self._file_url_base = file_url_base
        self._reissue_expired = reissue_expired
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        store: TokenStore,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ) -> "TokenIssuer":
        return cls(
            store,
            ttl_seconds=settings.FILE_TOKEN_TTL_SECONDS,
            token_length=settings.FILE_TOKEN_RANDOM_LENGTH,
            file_url_base=settings.file_url_base,
            reissue_expired=settings.FILE_TOKEN_REISSUE_EXPIRED,
            clock=clock,
        )

    async def issue_or_reuse(
        self,
        file_reference: str,
        owner_entity_id: int,
        ttl: Optional[int] = None
    ) -> IssuedToken:
        """
        Get the token for a file reference and owning entity.

        An existing row for the pair is returned as-is. Unless
        ``reissue_expired`` is set, that includes rows whose expiry has
        already passed.

        Store failures never reach the caller: they are logged and the
        freshly generated token is returned, flagged ``durable=False``.
        """
        reference = sanitize_file_reference(file_reference)
        now = int(self._clock())

        try:
            existing = await self._store.find_by_reference(
                reference,
                owner_entity_id,
                valid_at=now if self._reissue_expired else None,
            )
        except StoreError as e:
            existing = None
            logger.error(
                f"Error looking up token: {e}",
                extra={
                    "event_type": "filetoken.issue.lookup_failed",
                    "entity_id": owner_entity_id,
                    "file_reference": reference,
                },
            )

        if existing is not None:
            return IssuedToken(
                token=existing.token,
                expires_at=existing.expires_at,
                reused=True,
            )

        lifetime = self._ttl_seconds if ttl is None else ttl
        record = FileToken(
            token=generate_token(now, self._token_length),
            entity_id=owner_entity_id,
            image_url=reference,
            exp_timestamp=now + lifetime,
            request_timestamp=now,
        )

        durable = True
        try:
            await self._store.insert(record)
        except StoreError as e:
            durable = False
            logger.error(
                f"Error inserting token: {e}",
                extra={
                    "event_type": "filetoken.issue.store_failed",
                    "entity_id": owner_entity_id,
                    "file_reference": reference,
                },
            )

        return IssuedToken(
            token=record.token,
            expires_at=datetime.fromtimestamp(now + lifetime, tz=timezone.utc),
            durable=durable,
        )

    def build_file_url(self, token: str) -> str:
        """Absolute link that serves the file behind ``token``."""
        return f"{self._file_url_base}{token}"

    async def issue_urls(
        self,
        file_references: Iterable[str],
        owner_entity_id: int
    ) -> List[str]:
        """Issue (or reuse) a token per reference and return their links in order."""
        urls = []
        for file_reference in file_references:
            issued = await self.issue_or_reuse(file_reference, owner_entity_id)
            urls.append(self.build_file_url(issued.token))
        return urls
