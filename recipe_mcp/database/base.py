"""
Base protocols for the storage backends.
All storage adapters must implement these protocols.
"""

from typing import Any, Protocol, runtime_checkable

from recipe_mcp.auth.models import (
    StoredAuthCode,
    StoredClient,
    StoredToken,
    TokenKind,
)


@runtime_checkable
class OAuthStore(Protocol):
    """
    Protocol defining the persistence contract of the OAuth components.

    Every method either completes or raises ``StorageError``. Operations that
    decide who wins a race (code redemption, pair revocation) are single
    conditional statements on the backend, never a read followed by a write.
    """

    async def get_client(self, client_id: str) -> StoredClient | None:
        """Return the registered client or None."""
        ...

    async def insert_client(self, client: StoredClient) -> None:
        """
        Persist a new client.

        Raises:
            StorageError: If the insert cannot be committed, including a
                duplicate client_id
        """
        ...

    async def insert_authorization_code(self, code: StoredAuthCode) -> None:
        """Persist a new authorization code."""
        ...

    async def get_authorization_code(
        self,
        code: str,
        client_id: str,
    ) -> StoredAuthCode | None:
        """Return the code row matching both code and owning client, or None."""
        ...

    async def delete_authorization_code(
        self,
        code: str,
        client_id: str,
    ) -> StoredAuthCode | None:
        """
        Delete the code row matching code and owning client.

        Returns:
            The deleted row, or None when nothing matched. Of two concurrent
            calls for the same code at most one receives the row.
        """
        ...

    async def insert_tokens(self, tokens: list[StoredToken]) -> None:
        """Persist all given token rows in one insert."""
        ...

    async def get_token(
        self,
        token: str,
        *,
        token_type: TokenKind | None = None,
        client_id: str | None = None,
        include_revoked: bool = False,
    ) -> StoredToken | None:
        """
        Look up a token row by value.

        Args:
            token: Token value
            token_type: Only match rows of this kind
            client_id: Only match rows owned by this client
            include_revoked: Also match rows already marked revoked

        Returns:
            The matching row or None
        """
        ...

    async def revoke_tokens(
        self,
        tokens: list[str],
        *,
        client_id: str | None = None,
    ) -> list[str]:
        """
        Mark all still-active rows among ``tokens`` as revoked in one update.

        Returns:
            The token values this call moved from active to revoked
        """
        ...


@runtime_checkable
class RecipeDatabase(Protocol):
    """
    Protocol for the vector-indexed recipe store queried by the search tool.
    """

    async def search_recipes(
        self,
        query_embedding: list[float],
        match_threshold: float,
        match_count: int,
    ) -> list[dict[str, Any]]:
        """
        Rank recipes by similarity to the query embedding.

        Returns:
            List of recipe rows, each carrying a ``similarity`` score
        """
        ...
