"""Database models."""

from filetoken.models.file_token import FileToken

__all__ = ["FileToken"]
