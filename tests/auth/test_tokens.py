"""
Tests for the token manager.

Covers issuance, verification, refresh rotation and revocation of linked
access/refresh pairs.
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from recipe_mcp.auth.clients import ClientRegistry
from recipe_mcp.auth.models import ClientDescriptor, TokenKind
from recipe_mcp.auth.tokens import TokenManager
from recipe_mcp.core.exceptions import (
    ExpiredError,
    InvalidRequestError,
    InvalidTokenError,
    NotFoundError,
    StorageError,
)

THIRTY_DAYS = 30 * 24 * 60 * 60


class TestIssuePair:
    """Test token pair issuance."""

    @pytest.mark.asyncio
    async def test_issue_pair_shape(self, tokens, client):
        """The pair carries bearer type, one hour lifetime and joined scopes."""
        pair = await tokens.issue_pair(client.client_id, ["read", "write"])

        assert pair.access_token.startswith("access_")
        assert pair.refresh_token.startswith("refresh_")
        assert pair.token_type == "bearer"
        assert pair.expires_in == 3600
        assert pair.scope == "read write"

    @pytest.mark.asyncio
    async def test_issue_pair_links_rows(self, tokens, store, client, clock):
        """Both rows are stored, linked and given their own expiry."""
        pair = await tokens.issue_pair(client.client_id, ["read"], "https://api.example")

        access = await store.get_token(pair.access_token)
        refresh = await store.get_token(pair.refresh_token)

        assert access.token_type == TokenKind.ACCESS
        assert refresh.token_type == TokenKind.REFRESH
        assert access.related_token == pair.refresh_token
        assert refresh.related_token == pair.access_token
        assert access.expires_at == clock() + timedelta(seconds=3600)
        assert refresh.expires_at == clock() + timedelta(seconds=THIRTY_DAYS)
        assert access.resource == refresh.resource == "https://api.example"
        assert not access.revoked
        assert not refresh.revoked

    @pytest.mark.asyncio
    async def test_issue_pair_with_no_scopes(self, tokens, client):
        """An empty grant yields an empty scope string."""
        pair = await tokens.issue_pair(client.client_id, [])

        assert pair.scope == ""


class TestVerify:
    """Test bearer token verification."""

    @pytest.mark.asyncio
    async def test_verify_round_trip(self, tokens, client, clock):
        """A freshly issued access token verifies to its grant."""
        pair = await tokens.issue_pair(client.client_id, ["read"], "https://api.example")

        verified = await tokens.verify(pair.access_token)

        assert verified.client_id == client.client_id
        assert verified.scopes == ["read"]
        assert verified.resource == "https://api.example"
        assert verified.expires_at == int(clock().timestamp()) + 3600

    @pytest.mark.asyncio
    async def test_verify_unknown_token(self, tokens):
        """An unknown token is invalid."""
        with pytest.raises(InvalidTokenError):
            await tokens.verify("access_unknown")

    @pytest.mark.asyncio
    async def test_verify_rejects_refresh_token(self, tokens, client):
        """A refresh token cannot be used as a bearer token."""
        pair = await tokens.issue_pair(client.client_id, ["read"])

        with pytest.raises(InvalidTokenError):
            await tokens.verify(pair.refresh_token)

    @pytest.mark.asyncio
    async def test_verify_expired_token(self, tokens, client, clock):
        """An access token is expired at exactly one hour."""
        pair = await tokens.issue_pair(client.client_id, ["read"])

        clock.advance(3599)
        await tokens.verify(pair.access_token)

        clock.advance(1)
        with pytest.raises(ExpiredError):
            await tokens.verify(pair.access_token)

    @pytest.mark.asyncio
    async def test_verify_does_not_write(self, tokens, store, client):
        """Verification never touches storage beyond one read."""
        pair = await tokens.issue_pair(client.client_id, ["read"])
        store.revoke_tokens = AsyncMock()
        store.insert_tokens = AsyncMock()

        await tokens.verify(pair.access_token)

        store.revoke_tokens.assert_not_called()
        store.insert_tokens.assert_not_called()


class TestRotate:
    """Test refresh token rotation."""

    @pytest.mark.asyncio
    async def test_rotate_revokes_old_pair(self, tokens, client):
        """After rotation neither old token is usable."""
        old = await tokens.issue_pair(client.client_id, ["read"])

        new = await tokens.rotate(client.client_id, old.refresh_token)

        assert new.access_token != old.access_token
        assert new.refresh_token != old.refresh_token
        with pytest.raises(InvalidTokenError):
            await tokens.verify(old.access_token)
        with pytest.raises(NotFoundError):
            await tokens.rotate(client.client_id, old.refresh_token)
        await tokens.verify(new.access_token)

    @pytest.mark.asyncio
    async def test_rotate_keeps_scopes_by_default(self, tokens, client):
        """Without requested scopes the old grant is carried over."""
        old = await tokens.issue_pair(client.client_id, ["read"])

        new = await tokens.rotate(client.client_id, old.refresh_token)

        assert new.scope == "read"

    @pytest.mark.asyncio
    async def test_rotate_uses_requested_scopes(self, tokens, client):
        """Requested scopes replace the old grant."""
        old = await tokens.issue_pair(client.client_id, ["read"])

        new = await tokens.rotate(
            client.client_id,
            old.refresh_token,
            requested_scopes=["read", "write"],
        )

        assert new.scope == "read write"
        verified = await tokens.verify(new.access_token)
        assert verified.scopes == ["read", "write"]

    @pytest.mark.asyncio
    async def test_rotate_keeps_resource(self, tokens, client):
        """The new pair is bound to the original resource."""
        old = await tokens.issue_pair(client.client_id, ["read"], "https://api.example")

        new = await tokens.rotate(client.client_id, old.refresh_token)

        verified = await tokens.verify(new.access_token)
        assert verified.resource == "https://api.example"

    @pytest.mark.asyncio
    async def test_rotate_rejects_other_resource(self, tokens, client):
        """A refresh request for another resource is rejected without revoking."""
        old = await tokens.issue_pair(client.client_id, ["read"], "https://api.example")

        with pytest.raises(InvalidRequestError) as exc_info:
            await tokens.rotate(
                client.client_id,
                old.refresh_token,
                resource="https://elsewhere.example",
            )

        assert exc_info.value.oauth_error == "invalid_target"
        await tokens.verify(old.access_token)

    @pytest.mark.asyncio
    async def test_rotate_new_expiry_counts_from_now(self, tokens, store, client, clock):
        """The new pair's lifetimes start at rotation time."""
        old = await tokens.issue_pair(client.client_id, ["read"])
        clock.advance(1800)

        new = await tokens.rotate(client.client_id, old.refresh_token)

        access = await store.get_token(new.access_token)
        refresh = await store.get_token(new.refresh_token)
        assert access.expires_at == clock() + timedelta(seconds=3600)
        assert refresh.expires_at == clock() + timedelta(seconds=THIRTY_DAYS)

    @pytest.mark.asyncio
    async def test_rotate_expired_refresh_token(self, tokens, client, clock):
        """An expired refresh token cannot be rotated."""
        old = await tokens.issue_pair(client.client_id, ["read"])
        clock.advance(THIRTY_DAYS)

        with pytest.raises(ExpiredError):
            await tokens.rotate(client.client_id, old.refresh_token)

    @pytest.mark.asyncio
    async def test_rotate_by_other_client(self, tokens, client, other_client):
        """A refresh token only rotates for the client it was issued to."""
        old = await tokens.issue_pair(client.client_id, ["read"])

        with pytest.raises(NotFoundError):
            await tokens.rotate(other_client.client_id, old.refresh_token)

        await tokens.verify(old.access_token)

    @pytest.mark.asyncio
    async def test_rotate_with_access_token(self, tokens, client):
        """An access token cannot be presented as a refresh token."""
        old = await tokens.issue_pair(client.client_id, ["read"])

        with pytest.raises(NotFoundError):
            await tokens.rotate(client.client_id, old.access_token)

    @pytest.mark.asyncio
    async def test_concurrent_rotations(self, interleaving_store, clock):
        """Exactly one of two rotations that both pass the lookup succeeds."""
        client = await ClientRegistry(interleaving_store, clock=clock).register(
            ClientDescriptor(redirect_uris=["https://app.example/cb"]),
        )
        tokens = TokenManager(interleaving_store, clock=clock)
        old = await tokens.issue_pair(client.client_id, ["read"])

        results = await asyncio.gather(
            tokens.rotate(client.client_id, old.refresh_token),
            tokens.rotate(client.client_id, old.refresh_token),
            return_exceptions=True,
        )

        succeeded = [r for r in results if not isinstance(r, Exception)]
        failed = [r for r in results if isinstance(r, NotFoundError)]
        assert len(succeeded) == 1
        assert len(failed) == 1
        assert interleaving_store.calls == [
            "get_token",
            "get_token",
            "revoke_tokens",
            "revoke_tokens",
        ]

    @pytest.mark.asyncio
    async def test_rotate_lost_race_after_lookup(self, tokens, store, client):
        """A token revoked between lookup and revocation is reported as not found."""
        old = await tokens.issue_pair(client.client_id, ["read"])
        store.revoke_tokens = AsyncMock(return_value=[])

        with pytest.raises(NotFoundError):
            await tokens.rotate(client.client_id, old.refresh_token)

    @pytest.mark.asyncio
    async def test_rotate_fails_closed(self, tokens, store, client):
        """If the new pair cannot be stored the old pair stays revoked."""
        old = await tokens.issue_pair(client.client_id, ["read"])
        store.insert_tokens = AsyncMock(side_effect=StorageError("write failed"))

        with pytest.raises(StorageError):
            await tokens.rotate(client.client_id, old.refresh_token)

        with pytest.raises(InvalidTokenError):
            await tokens.verify(old.access_token)


class TestRevoke:
    """Test token revocation."""

    @pytest.mark.asyncio
    async def test_revoke_access_revokes_pair(self, tokens, client):
        """Revoking the access token also revokes its refresh token."""
        pair = await tokens.issue_pair(client.client_id, ["read"])

        await tokens.revoke(client.client_id, pair.access_token)

        with pytest.raises(InvalidTokenError):
            await tokens.verify(pair.access_token)
        with pytest.raises(NotFoundError):
            await tokens.rotate(client.client_id, pair.refresh_token)

    @pytest.mark.asyncio
    async def test_revoke_refresh_revokes_pair(self, tokens, client):
        """Revoking the refresh token also revokes its access token."""
        pair = await tokens.issue_pair(client.client_id, ["read"])

        await tokens.revoke(client.client_id, pair.refresh_token)

        with pytest.raises(InvalidTokenError):
            await tokens.verify(pair.access_token)

    @pytest.mark.asyncio
    async def test_revoke_is_idempotent(self, tokens, client):
        """Revoking twice succeeds silently."""
        pair = await tokens.issue_pair(client.client_id, ["read"])

        await tokens.revoke(client.client_id, pair.access_token)
        await tokens.revoke(client.client_id, pair.access_token)

    @pytest.mark.asyncio
    async def test_revoke_unknown_token(self, tokens, client):
        """Revoking an unknown token succeeds silently."""
        await tokens.revoke(client.client_id, "access_unknown")

    @pytest.mark.asyncio
    async def test_revoke_other_clients_token(self, tokens, client, other_client):
        """A client cannot revoke another client's token."""
        pair = await tokens.issue_pair(client.client_id, ["read"])

        await tokens.revoke(other_client.client_id, pair.access_token)

        verified = await tokens.verify(pair.access_token)
        assert verified.client_id == client.client_id

    @pytest.mark.asyncio
    async def test_revoke_leaves_other_pairs(self, tokens, client):
        """Only the named pair is revoked."""
        first = await tokens.issue_pair(client.client_id, ["read"])
        second = await tokens.issue_pair(client.client_id, ["read"])

        await tokens.revoke(client.client_id, first.access_token)

        await tokens.verify(second.access_token)
