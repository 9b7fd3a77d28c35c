"""File access token model.

A row maps an opaque, unguessable token to a stored file reference for a
limited time:
- Token is the primary key (generated, never client-supplied)
- (image_url, entity_id) is the natural key issuance deduplicates on
- exp_timestamp bounds retrieval; rows are never updated after insert
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from filetoken.db.session import Base


class FileToken(Base):
    """Time-limited token granting access to one stored file."""

    __tablename__ = "filetoken_list"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Entity (e.g. content item) that owns the file reference
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Sanitized file reference, public or private by prefix
    image_url: Mapped[str] = mapped_column(String(2048), nullable=False)

    # Unix seconds
    exp_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    request_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        Index("ix_filetoken_list_image_url_entity_id", "image_url", "entity_id"),
    )

    @property
    def created_at(self) -> datetime:
        return datetime.fromtimestamp(self.request_timestamp, tz=timezone.utc)

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp_timestamp, tz=timezone.utc)

    def is_expired_at(self, now: float) -> bool:
        """A token is valid strictly before its expiry second."""
        return now >= self.exp_timestamp

    def __repr__(self) -> str:
        return (
            f"<FileToken entity_id={self.entity_id} image_url={self.image_url!r} "
            f"exp_timestamp={self.exp_timestamp}>"
        )
