"""Authorization code manager: short-lived, single-use codes bound to PKCE."""

import logging
import secrets
from datetime import timedelta
from typing import TYPE_CHECKING

from mcp.server.auth.provider import construct_redirect_uri

from recipe_mcp.core.constants import AUTHORIZATION_CODE_TTL_SECONDS
from recipe_mcp.core.exceptions import (
    ExpiredError,
    InvalidRequestError,
    NotFoundError,
)
from recipe_mcp.core.logging import redact

from .models import Clock, StoredAuthCode, utc_now

if TYPE_CHECKING:
    from recipe_mcp.database.base import OAuthStore

logger = logging.getLogger(__name__)


class AuthorizationCodeManager:
    """
    Issues and redeems authorization codes.

    A code moves from issued to exactly one terminal state: redeemed (row
    deleted by a successful exchange) or expired (row deleted when an exchange
    finds it past its expiry). Expired codes nobody tries to redeem stay in
    storage until the backend cleans them up.
    """

    def __init__(
        self,
        store: "OAuthStore",
        clock: Clock = utc_now,
        ttl_seconds: int = AUTHORIZATION_CODE_TTL_SECONDS,
    ) -> None:
        self._store = store
        self._clock = clock
        self._ttl = timedelta(seconds=ttl_seconds)

    async def issue(
        self,
        client_id: str,
        redirect_uri: str,
        code_challenge: str,
        scopes: list[str],
        state: str | None = None,
        resource: str | None = None,
        redirect_uri_provided_explicitly: bool = True,
    ) -> str:
        """
        Mint and persist a new authorization code.

        Args:
            client_id: Owning client
            redirect_uri: Redirect URI supplied with the authorization request
            code_challenge: PKCE code challenge (required)
            scopes: Requested scopes
            state: Opaque caller state echoed on the redirect
            resource: Target resource indicator (RFC 8707)
            redirect_uri_provided_explicitly: Whether the request named the URI

        Returns:
            The code value

        Raises:
            InvalidRequestError: If the code challenge is missing or empty
            StorageError: If the code could not be stored
        """
        if not code_challenge:
            msg = "code_challenge is required"
            raise InvalidRequestError(msg)

        code = f"authcode_{secrets.token_urlsafe(32)}"
        stored = StoredAuthCode(
            code=code,
            client_id=client_id,
            redirect_uri=redirect_uri,
            redirect_uri_provided_explicitly=redirect_uri_provided_explicitly,
            code_challenge=code_challenge,
            scopes=list(dict.fromkeys(scopes)),
            state=state,
            resource=resource,
            expires_at=self._clock() + self._ttl,
        )
        await self._store.insert_authorization_code(stored)

        logger.info("Issued authorization code %s for client %s", redact(code), client_id)
        return code

    @staticmethod
    def redirect_for(redirect_uri: str, code: str, state: str | None = None) -> str:
        """Build the redirect carrying code and state, keeping existing query parameters."""
        return construct_redirect_uri(redirect_uri, code=code, state=state)

    async def lookup(self, client_id: str, code: str) -> StoredAuthCode:
        """
        Read a code without consuming it.

        Raises:
            NotFoundError: If no row matches both code and client
        """
        stored = await self._store.get_authorization_code(code, client_id)
        if stored is None:
            msg = "Authorization code not found"
            raise NotFoundError(msg)
        return stored

    async def challenge_for(self, client_id: str, code: str) -> str:
        """Return the PKCE challenge bound to the code for verification by the caller."""
        stored = await self.lookup(client_id, code)
        return stored.code_challenge

    async def redeem(self, client_id: str, code: str) -> StoredAuthCode:
        """
        Consume a code.

        The row is removed by one conditional delete, so concurrent redemptions
        of the same code cannot both succeed. An expired code is removed too.

        Raises:
            NotFoundError: If no row matches both code and client
            ExpiredError: If the code was past its expiry (it is now deleted)
        """
        stored = await self._store.delete_authorization_code(code, client_id)
        if stored is None:
            msg = "Authorization code not found"
            raise NotFoundError(msg)

        if self._clock() >= stored.expires_at:
            logger.info("Discarded expired authorization code %s", redact(code))
            msg = "Authorization code expired"
            raise ExpiredError(msg)

        logger.debug("Redeemed authorization code %s", redact(code))
        return stored
