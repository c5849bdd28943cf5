"""Client registry: dynamic registration and lookup of OAuth clients."""

import logging
import secrets
from typing import TYPE_CHECKING

from recipe_mcp.core.constants import (
    CLIENT_SECRET_NEVER_EXPIRES,
    DEFAULT_GRANT_TYPES,
    DEFAULT_RESPONSE_TYPES,
    DEFAULT_TOKEN_ENDPOINT_AUTH_METHOD,
)
from recipe_mcp.core.exceptions import InvalidRequestError, NotFoundError

from .models import ClientDescriptor, Clock, StoredClient, utc_now

if TYPE_CHECKING:
    from recipe_mcp.database.base import OAuthStore

logger = logging.getLogger(__name__)


class ClientRegistry:
    """Reads and creates client records; clients are never updated or deleted here."""

    def __init__(self, store: "OAuthStore", clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    async def lookup(self, client_id: str) -> StoredClient:
        """
        Return the registered client.

        Raises:
            NotFoundError: If no client has this identifier
        """
        stored = await self._store.get_client(client_id)
        if stored is None:
            msg = f"Client not found: {client_id}"
            raise NotFoundError(msg)
        return stored

    async def register(self, descriptor: ClientDescriptor) -> StoredClient:
        """
        Register a new client with fresh credentials.

        Unset descriptor fields get the RFC 7591 defaults. The identifier is
        128 random bits; an insert collision is reported, not retried.

        Args:
            descriptor: Requested client metadata (redirect_uris required)

        Returns:
            The persisted client record

        Raises:
            InvalidRequestError: If no redirect URI was supplied
            StorageError: If the record could not be committed
        """
        if not descriptor.redirect_uris:
            msg = "redirect_uris is required"
            raise InvalidRequestError(msg, oauth_error="invalid_redirect_uri")

        client = StoredClient(
            client_id=f"mcp_{secrets.token_urlsafe(16)}",
            client_secret=secrets.token_hex(32),
            client_id_issued_at=int(self._clock().timestamp()),
            client_secret_expires_at=CLIENT_SECRET_NEVER_EXPIRES,
            redirect_uris=list(descriptor.redirect_uris),
            client_name=descriptor.client_name,
            token_endpoint_auth_method=(
                descriptor.token_endpoint_auth_method
                or DEFAULT_TOKEN_ENDPOINT_AUTH_METHOD
            ),
            grant_types=list(descriptor.grant_types or DEFAULT_GRANT_TYPES),
            response_types=list(descriptor.response_types or DEFAULT_RESPONSE_TYPES),
            scope=descriptor.scope,
        )
        await self._store.insert_client(client)

        logger.info("Registered client: %s (%s)", client.client_id, client.client_name)
        return client
