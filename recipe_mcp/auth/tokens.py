"""Token manager: issues, rotates, verifies and revokes access/refresh pairs."""

import logging
import secrets
from datetime import timedelta
from typing import TYPE_CHECKING

from recipe_mcp.core.constants import (
    ACCESS_TOKEN_TTL_SECONDS,
    REFRESH_TOKEN_TTL_SECONDS,
    TOKEN_TYPE_BEARER,
)
from recipe_mcp.core.exceptions import (
    ExpiredError,
    InvalidRequestError,
    InvalidTokenError,
    NotFoundError,
)
from recipe_mcp.core.logging import redact

from .models import (
    Clock,
    StoredToken,
    TokenKind,
    TokenPair,
    VerifiedAccess,
    utc_now,
)

if TYPE_CHECKING:
    from recipe_mcp.database.base import OAuthStore

logger = logging.getLogger(__name__)


class TokenManager:
    """
    Owns the token pair lifecycle.

    Access and refresh tokens are always written together and point at each
    other through ``related_token``. A pair is active until it is revoked
    (explicitly, or by rotating its refresh token); expiry is never stored as a
    transition and is only checked when a token is used. Rows are never deleted.
    """

    def __init__(
        self,
        store: "OAuthStore",
        clock: Clock = utc_now,
        access_ttl_seconds: int = ACCESS_TOKEN_TTL_SECONDS,
        refresh_ttl_seconds: int = REFRESH_TOKEN_TTL_SECONDS,
    ) -> None:
        self._store = store
        self._clock = clock
        self._access_ttl = access_ttl_seconds
        self._refresh_ttl = refresh_ttl_seconds

    async def issue_pair(
        self,
        client_id: str,
        scopes: list[str],
        resource: str | None = None,
    ) -> TokenPair:
        """
        Mint and persist a linked access/refresh pair.

        Both expiries are measured from now, independently of any earlier pair.

        Raises:
            StorageError: If the pair could not be stored
        """
        access_token = f"access_{secrets.token_urlsafe(32)}"
        refresh_token = f"refresh_{secrets.token_urlsafe(32)}"
        now = self._clock()
        granted = list(scopes)

        await self._store.insert_tokens(
            [
                StoredToken(
                    token=access_token,
                    token_type=TokenKind.ACCESS,
                    client_id=client_id,
                    scopes=granted,
                    resource=resource,
                    expires_at=now + timedelta(seconds=self._access_ttl),
                    related_token=refresh_token,
                ),
                StoredToken(
                    token=refresh_token,
                    token_type=TokenKind.REFRESH,
                    client_id=client_id,
                    scopes=granted,
                    resource=resource,
                    expires_at=now + timedelta(seconds=self._refresh_ttl),
                    related_token=access_token,
                ),
            ],
        )

        logger.info("Issued tokens for client: %s", client_id)
        return TokenPair(
            access_token=access_token,
            token_type=TOKEN_TYPE_BEARER,
            expires_in=self._access_ttl,
            refresh_token=refresh_token,
            scope=" ".join(granted),
        )

    async def lookup_refresh(self, client_id: str, refresh_token: str) -> StoredToken:
        """
        Read an active refresh token owned by the client.

        Raises:
            NotFoundError: If no such unrevoked refresh token exists
        """
        stored = await self._store.get_token(
            refresh_token,
            token_type=TokenKind.REFRESH,
            client_id=client_id,
        )
        if stored is None:
            msg = "Invalid refresh token"
            raise NotFoundError(msg)
        return stored

    async def rotate(
        self,
        client_id: str,
        refresh_token: str,
        requested_scopes: list[str] | None = None,
        resource: str | None = None,
    ) -> TokenPair:
        """
        Exchange a refresh token for a new pair, revoking the old pair.

        The old pair is revoked in one conditional update before the new pair
        is written. If writing the new pair then fails, the call raises and the
        caller is left with no usable pair; the client has to authorize again.

        Args:
            client_id: Client presenting the token
            refresh_token: Presented refresh token
            requested_scopes: Scopes for the new pair (defaults to the old grant's)
            resource: Must match the old grant's resource when given

        Raises:
            NotFoundError: If the token is unknown, revoked, owned by another
                client, or consumed by a concurrent request
            ExpiredError: If the refresh token is past its expiry
            InvalidRequestError: If ``resource`` differs from the original grant
            StorageError: If revocation or issuance failed
        """
        stored = await self.lookup_refresh(client_id, refresh_token)

        if self._clock() >= stored.expires_at:
            msg = "Refresh token expired"
            raise ExpiredError(msg)

        if resource is not None and resource != stored.resource:
            msg = "Resource does not match the original grant"
            raise InvalidRequestError(msg, oauth_error="invalid_target")

        revoked = await self._store.revoke_tokens(
            [stored.token, stored.related_token or ""],
            client_id=client_id,
        )
        if stored.token not in revoked:
            msg = "Invalid refresh token"
            raise NotFoundError(msg)

        scopes = stored.scopes if requested_scopes is None else requested_scopes
        logger.info(
            "Rotating refresh token %s for client %s",
            redact(refresh_token),
            client_id,
        )
        return await self.issue_pair(client_id, scopes, stored.resource)

    async def verify(self, token: str) -> VerifiedAccess:
        """
        Validate a bearer access token.

        A single read and a clock comparison; nothing is written.

        Raises:
            InvalidTokenError: If the token is unknown, revoked or not an access token
            ExpiredError: If the token is past its expiry
        """
        stored = await self._store.get_token(token, token_type=TokenKind.ACCESS)
        if stored is None:
            msg = "Invalid access token"
            raise InvalidTokenError(msg)

        if self._clock() >= stored.expires_at:
            msg = "Access token expired"
            raise ExpiredError(msg)

        return VerifiedAccess(
            token=stored.token,
            client_id=stored.client_id,
            scopes=stored.scopes,
            expires_at=int(stored.expires_at.timestamp()),
            resource=stored.resource,
        )

    async def revoke(self, client_id: str, token: str) -> None:
        """
        Revoke a token of either kind together with its sibling.

        Unknown tokens, tokens of other clients and already revoked tokens are
        ignored so revocation never reveals whether a token exists.

        Raises:
            StorageError: If the backend could not be reached
        """
        stored = await self._store.get_token(
            token,
            client_id=client_id,
            include_revoked=True,
        )
        if stored is None:
            logger.debug("Ignoring revocation of unknown token %s", redact(token))
            return

        revoked = await self._store.revoke_tokens(
            [stored.token, stored.related_token or ""],
            client_id=client_id,
        )
        if revoked:
            logger.info(
                "Revoked %s token %s and its pair for client %s",
                stored.token_type.value,
                redact(token),
                client_id,
            )
