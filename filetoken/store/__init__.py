"""Token store interface and implementations."""
from .interfaces import TokenStore
from .sqlalchemy_store import SQLAlchemyTokenStore

__all__ = ["TokenStore", "SQLAlchemyTokenStore"]
