"""
Supabase adapter implementing the OAuthStore and RecipeDatabase protocols.

OAuth clients, authorization codes and tokens live in three PostgreSQL tables
(see scripts/supabase_oauth_migration.sql); recipes are ranked by the
``search_recipes`` pgvector RPC function.
"""

import asyncio
import logging
from typing import Any, cast

import httpx
from postgrest.exceptions import APIError
from supabase import Client, ClientOptions, create_client

from recipe_mcp.auth.models import (
    StoredAuthCode,
    StoredClient,
    StoredToken,
    TokenKind,
)
from recipe_mcp.core.constants import (
    OAUTH_CLIENTS_TABLE,
    OAUTH_CODES_TABLE,
    OAUTH_TOKENS_TABLE,
    SEARCH_RECIPES_RPC,
)
from recipe_mcp.core.exceptions import StorageError, VectorStoreError

logger = logging.getLogger(__name__)


def _pgvector_literal(embedding: list[float]) -> str:
    """Serialize an embedding in pgvector text form: '[0.1,0.2,...]'."""
    return "[" + ",".join(str(value) for value in embedding) + "]"


class SupabaseAdapter:
    """
    Supabase implementation of the OAuthStore and RecipeDatabase protocols.

    The supabase client is synchronous; every request runs in the default
    thread pool so concurrent MCP requests do not block the event loop.
    """

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        *,
        timeout: int = 10,
        client: Client | None = None,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            url: Supabase project URL
            key: Supabase service key
            timeout: Per-request timeout in seconds
            client: Pre-built client (takes precedence over url/key)
        """
        self._url = url
        self._key = key
        self._timeout = timeout
        self.client: Client | None = client

    async def initialize(self) -> None:
        """Create the Supabase client connection."""
        if self.client is not None:
            return

        if not self._url or not self._key:
            msg = "SUPABASE_URL and SUPABASE_KEY must be set in environment variables"
            raise ValueError(msg)

        self.client = create_client(
            self._url,
            self._key,
            options=ClientOptions(postgrest_client_timeout=self._timeout),
        )
        logger.info("Supabase client initialized")

    def _table(self, name: str) -> Any:
        if not self.client:
            msg = "Database not initialized. Call initialize() first."
            raise RuntimeError(msg)
        return self.client.table(name)

    async def _execute(self, query: Any, operation: str) -> list[dict[str, Any]]:
        """Run a prepared PostgREST query off the event loop."""
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, query.execute)
        except (APIError, httpx.HTTPError) as e:
            logger.error("Supabase %s failed: %s", operation, e)
            msg = f"Failed to {operation}: {e}"
            raise StorageError(msg) from e
        return cast(list[dict[str, Any]], result.data) if result.data else []

    # ========== Clients ==========

    async def get_client(self, client_id: str) -> StoredClient | None:
        rows = await self._execute(
            self._table(OAUTH_CLIENTS_TABLE)
            .select("*")
            .eq("client_id", client_id)
            .limit(1),
            "load client",
        )
        return StoredClient.model_validate(rows[0]) if rows else None

    async def insert_client(self, client: StoredClient) -> None:
        await self._execute(
            self._table(OAUTH_CLIENTS_TABLE).insert(client.model_dump(mode="json")),
            "register client",
        )

    # ========== Authorization Codes ==========

    async def insert_authorization_code(self, code: StoredAuthCode) -> None:
        await self._execute(
            self._table(OAUTH_CODES_TABLE).insert(code.model_dump(mode="json")),
            "store authorization code",
        )

    async def get_authorization_code(
        self,
        code: str,
        client_id: str,
    ) -> StoredAuthCode | None:
        rows = await self._execute(
            self._table(OAUTH_CODES_TABLE)
            .select("*")
            .eq("code", code)
            .eq("client_id", client_id)
            .limit(1),
            "load authorization code",
        )
        return StoredAuthCode.model_validate(rows[0]) if rows else None

    async def delete_authorization_code(
        self,
        code: str,
        client_id: str,
    ) -> StoredAuthCode | None:
        # DELETE ... RETURNING: PostgreSQL hands the row to exactly one caller
        rows = await self._execute(
            self._table(OAUTH_CODES_TABLE)
            .delete()
            .eq("code", code)
            .eq("client_id", client_id),
            "redeem authorization code",
        )
        return StoredAuthCode.model_validate(rows[0]) if rows else None

    # ========== Tokens ==========

    async def insert_tokens(self, tokens: list[StoredToken]) -> None:
        await self._execute(
            self._table(OAUTH_TOKENS_TABLE).insert(
                [token.model_dump(mode="json") for token in tokens],
            ),
            "store tokens",
        )

    async def get_token(
        self,
        token: str,
        *,
        token_type: TokenKind | None = None,
        client_id: str | None = None,
        include_revoked: bool = False,
    ) -> StoredToken | None:
        query = self._table(OAUTH_TOKENS_TABLE).select("*").eq("token", token)
        if token_type is not None:
            query = query.eq("token_type", token_type.value)
        if client_id is not None:
            query = query.eq("client_id", client_id)
        if not include_revoked:
            query = query.eq("revoked", False)

        rows = await self._execute(query.limit(1), "load token")
        return StoredToken.model_validate(rows[0]) if rows else None

    async def revoke_tokens(
        self,
        tokens: list[str],
        *,
        client_id: str | None = None,
    ) -> list[str]:
        values = [token for token in tokens if token]
        if not values:
            return []

        query = (
            self._table(OAUTH_TOKENS_TABLE)
            .update({"revoked": True})
            .in_("token", values)
            .eq("revoked", False)
        )
        if client_id is not None:
            query = query.eq("client_id", client_id)

        rows = await self._execute(query, "revoke tokens")
        return [row["token"] for row in rows]

    # ========== Recipes ==========

    async def search_recipes(
        self,
        query_embedding: list[float],
        match_threshold: float,
        match_count: int,
    ) -> list[dict[str, Any]]:
        """Search recipes using vector similarity."""
        if not self.client:
            msg = "Database not initialized. Call initialize() first."
            raise RuntimeError(msg)

        params = {
            "query_embedding": _pgvector_literal(query_embedding),
            "match_threshold": match_threshold,
            "match_count": match_count,
        }
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(
                None,
                self.client.rpc(SEARCH_RECIPES_RPC, params).execute,
            )
        except (APIError, httpx.HTTPError) as e:
            logger.exception("Recipe vector search failed")
            msg = f"Supabase search error: {e}"
            raise VectorStoreError(msg) from e
        return cast(list[dict[str, Any]], result.data) if result.data else []
