"""Tests for the in-memory OAuth store."""

from datetime import UTC, datetime

import pytest

from recipe_mcp.auth.models import StoredAuthCode, StoredClient, StoredToken, TokenKind
from recipe_mcp.core.exceptions import StorageError
from recipe_mcp.database import InMemoryOAuthStore, OAuthStore

EXPIRES = datetime(2026, 1, 1, 13, 0, tzinfo=UTC)


@pytest.fixture
def client():
    return StoredClient(
        client_id="mcp_client",
        client_secret="secret",
        client_id_issued_at=1767268800,
        redirect_uris=["https://app.example/cb"],
        token_endpoint_auth_method="client_secret_post",
        grant_types=["authorization_code"],
        response_types=["code"],
    )


def token(value, kind=TokenKind.ACCESS, client_id="mcp_client", related=None):
    return StoredToken(
        token=value,
        token_type=kind,
        client_id=client_id,
        scopes=["read"],
        expires_at=EXPIRES,
        related_token=related,
    )


def test_satisfies_protocol():
    assert isinstance(InMemoryOAuthStore(), OAuthStore)


@pytest.mark.asyncio
async def test_duplicate_client_rejected(store, client):
    await store.insert_client(client)

    with pytest.raises(StorageError):
        await store.insert_client(client)


@pytest.mark.asyncio
async def test_code_requires_known_client(store):
    code = StoredAuthCode(
        code="authcode_abc",
        client_id="mcp_missing",
        redirect_uri="https://app.example/cb",
        code_challenge="challenge",
        expires_at=EXPIRES,
    )

    with pytest.raises(StorageError):
        await store.insert_authorization_code(code)


@pytest.mark.asyncio
async def test_insert_tokens_is_all_or_nothing(store, client):
    await store.insert_client(client)
    await store.insert_tokens([token("access_a")])

    with pytest.raises(StorageError):
        await store.insert_tokens([token("access_b"), token("access_a")])

    assert await store.get_token("access_b") is None


@pytest.mark.asyncio
async def test_returned_records_are_copies(store, client):
    await store.insert_client(client)
    await store.insert_tokens([token("access_a")])

    loaded = await store.get_token("access_a")
    loaded.revoked = True

    assert await store.get_token("access_a") is not None


@pytest.mark.asyncio
async def test_revoke_tokens_reports_transitions(store, client):
    await store.insert_client(client)
    await store.insert_tokens(
        [
            token("access_a", related="refresh_a"),
            token("refresh_a", TokenKind.REFRESH, related="access_a"),
        ],
    )

    first = await store.revoke_tokens(["access_a", "refresh_a"], client_id="mcp_client")
    second = await store.revoke_tokens(["access_a", "refresh_a"], client_id="mcp_client")

    assert first == ["access_a", "refresh_a"]
    assert second == []
    assert await store.get_token("access_a") is None
    assert (await store.get_token("access_a", include_revoked=True)).revoked


@pytest.mark.asyncio
async def test_revoke_tokens_respects_owner(store, client):
    await store.insert_client(client)
    await store.insert_tokens([token("access_a")])

    assert await store.revoke_tokens(["access_a"], client_id="mcp_other") == []
    assert await store.get_token("access_a") is not None
