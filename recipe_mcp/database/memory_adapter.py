"""
In-process implementation of the OAuthStore protocol.

Used for local development (OAUTH_STORE=memory) and as the substitute backend in
tests. State is lost on restart. A single lock makes every method atomic, which
gives the same guarantees as the conditional statements of the Supabase adapter.
"""

import logging
import threading

from recipe_mcp.auth.models import (
    StoredAuthCode,
    StoredClient,
    StoredToken,
    TokenKind,
)
from recipe_mcp.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class InMemoryOAuthStore:
    """Dictionary-backed OAuth store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._clients: dict[str, StoredClient] = {}
        self._codes: dict[str, StoredAuthCode] = {}
        self._tokens: dict[str, StoredToken] = {}
        logger.info("Initialized in-memory OAuth store (not persistent)")

    # ========== Clients ==========

    async def get_client(self, client_id: str) -> StoredClient | None:
        with self._lock:
            stored = self._clients.get(client_id)
            return stored.model_copy(deep=True) if stored else None

    async def insert_client(self, client: StoredClient) -> None:
        with self._lock:
            if client.client_id in self._clients:
                msg = f"Failed to register client: duplicate client_id {client.client_id}"
                raise StorageError(msg)
            self._clients[client.client_id] = client.model_copy(deep=True)

    # ========== Authorization Codes ==========

    async def insert_authorization_code(self, code: StoredAuthCode) -> None:
        with self._lock:
            if code.client_id not in self._clients:
                msg = f"Failed to store authorization code: unknown client {code.client_id}"
                raise StorageError(msg)
            if code.code in self._codes:
                msg = "Failed to store authorization code: duplicate code"
                raise StorageError(msg)
            self._codes[code.code] = code.model_copy(deep=True)

    async def get_authorization_code(
        self,
        code: str,
        client_id: str,
    ) -> StoredAuthCode | None:
        with self._lock:
            stored = self._codes.get(code)
            if stored is None or stored.client_id != client_id:
                return None
            return stored.model_copy(deep=True)

    async def delete_authorization_code(
        self,
        code: str,
        client_id: str,
    ) -> StoredAuthCode | None:
        with self._lock:
            stored = self._codes.get(code)
            if stored is None or stored.client_id != client_id:
                return None
            return self._codes.pop(code)

    # ========== Tokens ==========

    async def insert_tokens(self, tokens: list[StoredToken]) -> None:
        with self._lock:
            for token in tokens:
                if token.token in self._tokens:
                    msg = "Failed to store tokens: duplicate token"
                    raise StorageError(msg)
                if token.client_id not in self._clients:
                    msg = f"Failed to store tokens: unknown client {token.client_id}"
                    raise StorageError(msg)
            for token in tokens:
                self._tokens[token.token] = token.model_copy(deep=True)

    async def get_token(
        self,
        token: str,
        *,
        token_type: TokenKind | None = None,
        client_id: str | None = None,
        include_revoked: bool = False,
    ) -> StoredToken | None:
        with self._lock:
            stored = self._tokens.get(token)
            if stored is None:
                return None
            if token_type is not None and stored.token_type != token_type:
                return None
            if client_id is not None and stored.client_id != client_id:
                return None
            if stored.revoked and not include_revoked:
                return None
            return stored.model_copy(deep=True)

    async def revoke_tokens(
        self,
        tokens: list[str],
        *,
        client_id: str | None = None,
    ) -> list[str]:
        revoked: list[str] = []
        with self._lock:
            for value in tokens:
                stored = self._tokens.get(value) if value else None
                if stored is None or stored.revoked:
                    continue
                if client_id is not None and stored.client_id != client_id:
                    continue
                stored.revoked = True
                revoked.append(value)
        return revoked
