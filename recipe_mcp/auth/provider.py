"""Persistent OAuth Provider implementation.

This module wires the client registry, authorization code manager and token
manager into FastMCP's OAuth authorization server interface. The MCP SDK's
auth routes (registration, authorize, token, revoke, bearer middleware) call
these methods; failures from the components are translated into OAuth
protocol errors here and nowhere else.
"""

import contextlib
import logging
from typing import TYPE_CHECKING

from fastmcp.server.auth import OAuthProvider
from fastmcp.server.auth.auth import AccessToken
from mcp.server.auth.middleware.client_auth import ClientAuthenticator
from mcp.server.auth.provider import (
    AuthorizationCode,
    AuthorizationParams,
    AuthorizeError,
    RefreshToken,
    RegistrationError,
    TokenError,
)
from mcp.server.auth.routes import REVOCATION_PATH, cors_middleware
from mcp.server.auth.settings import ClientRegistrationOptions, RevocationOptions
from mcp.shared.auth import OAuthClientInformationFull, OAuthToken
from pydantic import AnyUrl
from starlette.routing import Route

from recipe_mcp.core.exceptions import (
    ExpiredError,
    InvalidRequestError,
    InvalidTokenError,
    NotFoundError,
    StorageError,
)
from recipe_mcp.core.logging import redact

from .clients import ClientRegistry
from .codes import AuthorizationCodeManager
from .models import ClientDescriptor, Clock, StoredClient, TokenPair, utc_now
from .revocation import PairRevocationHandler
from .tokens import TokenManager

if TYPE_CHECKING:
    from recipe_mcp.database.base import OAuthStore

logger = logging.getLogger(__name__)


def _client_id(client: OAuthClientInformationFull) -> str:
    if not client.client_id:
        raise TokenError("invalid_client", "Client ID is required")
    return client.client_id


class PersistentOAuthProvider(OAuthProvider):
    """OAuth Provider backed by an injected OAuthStore.

    Holds no OAuth state itself: every call reads or writes through to the
    store, so several server processes can share one backend.
    """

    def __init__(
        self,
        *,
        store: "OAuthStore",
        base_url: str,
        issuer_url: str | None = None,
        service_documentation_url: str | None = None,
        client_registration_options: ClientRegistrationOptions | None = None,
        revocation_options: RevocationOptions | None = None,
        required_scopes: list[str] | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize OAuth provider with persistent storage.

        Args:
            store: Backend for clients, codes and tokens
            base_url: Base URL for OAuth endpoints
            issuer_url: OAuth issuer URL (defaults to base_url)
            service_documentation_url: URL to service documentation
            client_registration_options: DCR configuration
            revocation_options: Token revocation configuration
            required_scopes: Scopes required for all requests
            clock: Source of the current UTC time
        """
        super().__init__(
            base_url=base_url,
            issuer_url=issuer_url,
            service_documentation_url=service_documentation_url,
            client_registration_options=client_registration_options,
            revocation_options=revocation_options,
            required_scopes=required_scopes,
        )

        self._clock = clock
        self.clients = ClientRegistry(store, clock=clock)
        self.codes = AuthorizationCodeManager(store, clock=clock)
        self.tokens = TokenManager(store, clock=clock)

        logger.info("Initialized PersistentOAuthProvider with %s", type(store).__name__)

    def get_routes(self, mcp_path: str | None = None) -> list[Route]:
        """Get the OAuth routes, with revocation handled by the token manager.

        Revoking either token of a pair revokes both, including when the
        presented access token has already expired.
        """
        routes: list[Route] = []
        for route in super().get_routes(mcp_path):
            if isinstance(route, Route) and route.path == REVOCATION_PATH:
                handler = PairRevocationHandler(
                    tokens=self.tokens,
                    client_authenticator=ClientAuthenticator(self),
                )
                routes.append(
                    Route(
                        REVOCATION_PATH,
                        endpoint=cors_middleware(handler.handle, ["POST", "OPTIONS"]),
                        methods=["POST", "OPTIONS"],
                    ),
                )
            else:
                routes.append(route)
        return routes

    # ========== Client Management ==========

    async def get_client(self, client_id: str) -> OAuthClientInformationFull | None:
        """Retrieve client from persistent storage."""
        try:
            stored = await self.clients.lookup(client_id)
        except NotFoundError:
            return None
        return self._to_client_info(stored)

    async def register_client(self, client_info: OAuthClientInformationFull) -> None:
        """Register a client, replacing the handler's provisional credentials.

        The registration handler responds with ``client_info`` after this call,
        so the generated identifier and secret are written back onto it.
        """
        descriptor = ClientDescriptor(
            redirect_uris=[str(uri) for uri in (client_info.redirect_uris or [])],
            client_name=client_info.client_name,
            token_endpoint_auth_method=client_info.token_endpoint_auth_method,
            grant_types=list(client_info.grant_types or []) or None,
            response_types=list(client_info.response_types or []) or None,
            scope=client_info.scope,
        )
        try:
            stored = await self.clients.register(descriptor)
        except InvalidRequestError as e:
            raise RegistrationError(e.oauth_error, str(e)) from e  # type: ignore[arg-type]

        registered = self._to_client_info(stored)
        client_info.client_id = registered.client_id
        client_info.client_secret = registered.client_secret
        client_info.client_id_issued_at = registered.client_id_issued_at
        client_info.client_secret_expires_at = registered.client_secret_expires_at

    @staticmethod
    def _to_client_info(stored: StoredClient) -> OAuthClientInformationFull:
        # Public clients authenticate with PKCE alone and never present the secret
        secret = (
            None if stored.token_endpoint_auth_method == "none" else stored.client_secret
        )
        return OAuthClientInformationFull(
            client_id=stored.client_id,
            client_secret=secret,
            client_id_issued_at=stored.client_id_issued_at,
            client_secret_expires_at=stored.client_secret_expires_at,
            redirect_uris=[AnyUrl(uri) for uri in stored.redirect_uris],
            client_name=stored.client_name,
            token_endpoint_auth_method=stored.token_endpoint_auth_method,
            grant_types=stored.grant_types,
            response_types=stored.response_types,
            scope=stored.scope,
        )

    # ========== Authorization Flow ==========

    async def authorize(
        self,
        client: OAuthClientInformationFull,
        params: AuthorizationParams,
    ) -> str:
        """Generate authorization code and return redirect URL."""
        if not client.client_id:
            raise AuthorizeError("unauthorized_client", "Client ID is required")

        redirect_uri = str(params.redirect_uri)
        try:
            code = await self.codes.issue(
                client.client_id,
                redirect_uri,
                params.code_challenge,
                list(params.scopes or []),
                state=params.state,
                resource=params.resource,
                redirect_uri_provided_explicitly=params.redirect_uri_provided_explicitly,
            )
        except InvalidRequestError as e:
            raise AuthorizeError("invalid_request", str(e)) from e

        return self.codes.redirect_for(redirect_uri, code, params.state)

    async def challenge_for_authorization_code(
        self,
        client: OAuthClientInformationFull,
        authorization_code: str,
    ) -> str:
        """Return the PKCE challenge stored with the code.

        Raises:
            NotFoundError: If the code does not exist for this client
        """
        return await self.codes.challenge_for(_client_id(client), authorization_code)

    async def load_authorization_code(
        self,
        client: OAuthClientInformationFull,
        authorization_code: str,
    ) -> AuthorizationCode | None:
        """Load authorization code from storage, discarding it if expired."""
        client_id = _client_id(client)
        try:
            stored = await self.codes.lookup(client_id, authorization_code)
        except NotFoundError:
            return None

        if self._clock() >= stored.expires_at:
            # redeem deletes the row and always fails for an expired code
            with contextlib.suppress(NotFoundError, ExpiredError):
                await self.codes.redeem(client_id, authorization_code)
            return None

        return AuthorizationCode(
            code=stored.code,
            client_id=stored.client_id,
            redirect_uri=AnyUrl(stored.redirect_uri),
            redirect_uri_provided_explicitly=stored.redirect_uri_provided_explicitly,
            scopes=stored.scopes,
            expires_at=stored.expires_at.timestamp(),
            code_challenge=stored.code_challenge,
            resource=stored.resource,
        )

    # ========== Token Exchange ==========

    async def exchange_authorization_code(
        self,
        client: OAuthClientInformationFull,
        authorization_code: AuthorizationCode,
    ) -> OAuthToken:
        """Redeem the code (one-time use) and issue a token pair."""
        client_id = _client_id(client)
        try:
            record = await self.codes.redeem(client_id, authorization_code.code)
        except (NotFoundError, ExpiredError) as e:
            raise TokenError("invalid_grant", str(e)) from e

        pair = await self.tokens.issue_pair(client_id, record.scopes, record.resource)
        return self._to_oauth_token(pair)

    # ========== Refresh Token ==========

    async def load_refresh_token(
        self,
        client: OAuthClientInformationFull,
        refresh_token: str,
    ) -> RefreshToken | None:
        """Load refresh token from storage."""
        try:
            stored = await self.tokens.lookup_refresh(_client_id(client), refresh_token)
        except NotFoundError:
            return None

        return RefreshToken(
            token=stored.token,
            client_id=stored.client_id,
            scopes=stored.scopes,
            expires_at=int(stored.expires_at.timestamp()),
        )

    async def exchange_refresh_token(
        self,
        client: OAuthClientInformationFull,
        refresh_token: RefreshToken,
        scopes: list[str],
    ) -> OAuthToken:
        """Rotate the refresh token into a new pair."""
        try:
            pair = await self.tokens.rotate(
                _client_id(client),
                refresh_token.token,
                requested_scopes=scopes,
            )
        except (NotFoundError, ExpiredError, InvalidRequestError) as e:
            raise TokenError(e.oauth_error, str(e)) from e  # type: ignore[arg-type]

        return self._to_oauth_token(pair)

    @staticmethod
    def _to_oauth_token(pair: TokenPair) -> OAuthToken:
        return OAuthToken(
            access_token=pair.access_token,
            token_type="Bearer",
            expires_in=pair.expires_in,
            refresh_token=pair.refresh_token,
            scope=pair.scope,
        )

    # ========== Token Validation ==========

    async def load_access_token(self, token: str) -> AccessToken | None:
        """Load and validate access token.

        Unknown, revoked and expired tokens all come back as None so the
        bearer middleware answers every case with the same 401.
        """
        try:
            verified = await self.tokens.verify(token)
        except (InvalidTokenError, ExpiredError) as e:
            logger.debug("Rejected access token %s: %s", redact(token), e)
            return None

        return AccessToken(
            token=verified.token,
            client_id=verified.client_id,
            scopes=verified.scopes,
            expires_at=verified.expires_at,
            resource=verified.resource,
        )

    # ========== Revocation ==========

    async def revoke_token(self, token: AccessToken | RefreshToken) -> None:
        """Revoke a token and its pair; never fails from the caller's view."""
        try:
            await self.tokens.revoke(token.client_id, token.token)
        except StorageError:
            logger.exception("Failed to revoke token %s", redact(token.token))
