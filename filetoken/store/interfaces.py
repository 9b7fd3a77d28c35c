"""
Abstract interface for the token store.

The issuer and the gateway only ever talk to each other through an
implementation of this contract.
"""
from abc import ABC, abstractmethod
from typing import Optional

from ..models import FileToken


class TokenStore(ABC):
    """
    Persistence contract for file tokens.

    Implementations:
    - SQLAlchemyTokenStore: relational table via an AsyncSession

    All failures surface as StoreError.
    """

    @abstractmethod
    async def find_by_reference(
        self,
        file_reference: str,
        owner_entity_id: int,
        valid_at: Optional[int] = None
    ) -> Optional[FileToken]:
        """
        Find a token issued for a (file reference, entity) pair.

        Args:
            file_reference: Sanitized file reference
            owner_entity_id: Owning entity id
            valid_at: If given, only tokens still valid at this unix time match

        Returns:
            A matching FileToken, or None
        """
        pass

    @abstractmethod
    async def find_by_token(self, token: str) -> Optional[FileToken]:
        """
        Find the record for a token.

        Returns:
            The FileToken, or None if the token is unknown
        """
        pass

    @abstractmethod
    async def insert(self, record: FileToken) -> None:
        """
        Persist a new token record.

        Raises:
            StoreError: If the record could not be stored
        """
        pass
