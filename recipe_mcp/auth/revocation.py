"""Token revocation endpoint (RFC 7009) that always revokes the whole pair.

The SDK's revocation handler resolves the presented value through
``load_access_token`` and ``load_refresh_token`` first. An expired access token
resolves to nothing there, so its refresh sibling would survive. This handler
authenticates the client the same way and passes the raw value straight to
``TokenManager.revoke``, which finds either kind of token in any state.
"""

import logging
from dataclasses import dataclass

from mcp.server.auth.errors import stringify_pydantic_error
from mcp.server.auth.handlers.revoke import RevocationErrorResponse, RevocationRequest
from mcp.server.auth.json_response import PydanticJSONResponse
from mcp.server.auth.middleware.client_auth import AuthenticationError, ClientAuthenticator
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import Response

from recipe_mcp.core.exceptions import StorageError
from recipe_mcp.core.logging import redact

from .tokens import TokenManager

logger = logging.getLogger(__name__)


@dataclass
class PairRevocationHandler:
    tokens: TokenManager
    client_authenticator: ClientAuthenticator

    async def handle(self, request: Request) -> Response:
        try:
            client = await self.client_authenticator.authenticate_request(request)
        except AuthenticationError as e:
            return PydanticJSONResponse(
                status_code=401,
                content=RevocationErrorResponse(
                    error="unauthorized_client",
                    error_description=e.message,
                ),
            )

        try:
            form_data = await request.form()
            revocation_request = RevocationRequest.model_validate(dict(form_data))
        except ValidationError as e:
            return PydanticJSONResponse(
                status_code=400,
                content=RevocationErrorResponse(
                    error="invalid_request",
                    error_description=stringify_pydantic_error(e),
                ),
            )

        # Unknown, foreign and already revoked tokens still get a 200
        try:
            await self.tokens.revoke(client.client_id, revocation_request.token)
        except StorageError:
            logger.exception("Failed to revoke token %s", redact(revocation_request.token))

        return Response(
            status_code=200,
            headers={
                "Cache-Control": "no-store",
                "Pragma": "no-cache",
            },
        )
