"""
Shared pytest fixtures and configuration for all tests.

OAuth component tests run against the in-memory store with a controllable
clock, so expiry can be exercised without sleeping. Supabase and the Gemini
embedding endpoint are always mocked.
"""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio

from recipe_mcp.auth.clients import ClientRegistry
from recipe_mcp.auth.codes import AuthorizationCodeManager
from recipe_mcp.auth.models import ClientDescriptor, StoredClient
from recipe_mcp.auth.tokens import TokenManager
from recipe_mcp.config import reset_settings
from recipe_mcp.database.memory_adapter import InMemoryOAuthStore


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class InterleavingStore(InMemoryOAuthStore):
    """Memory store that yields to the event loop before every lookup and
    conditional write, so gathered calls run their reads before their writes.
    """

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    async def _yield(self, name: str) -> None:
        await asyncio.sleep(0)
        self.calls.append(name)

    async def get_authorization_code(self, code, client_id):
        await self._yield("get_authorization_code")
        return await super().get_authorization_code(code, client_id)

    async def delete_authorization_code(self, code, client_id):
        await self._yield("delete_authorization_code")
        return await super().delete_authorization_code(code, client_id)

    async def get_token(self, token, **filters):
        await self._yield("get_token")
        return await super().get_token(token, **filters)

    async def revoke_tokens(self, tokens, **filters):
        await self._yield("revoke_tokens")
        return await super().revoke_tokens(tokens, **filters)


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings between tests."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryOAuthStore()


@pytest.fixture
def interleaving_store():
    return InterleavingStore()


@pytest.fixture
def registry(store, clock):
    return ClientRegistry(store, clock=clock)


@pytest.fixture
def codes(store, clock):
    return AuthorizationCodeManager(store, clock=clock)


@pytest.fixture
def tokens(store, clock):
    return TokenManager(store, clock=clock)


@pytest_asyncio.fixture
async def client(registry) -> StoredClient:
    """A registered client with one redirect URI."""
    return await registry.register(
        ClientDescriptor(
            redirect_uris=["https://app.example/cb"],
            client_name="Test Client",
        ),
    )


@pytest_asyncio.fixture
async def other_client(registry) -> StoredClient:
    """A second registered client."""
    return await registry.register(
        ClientDescriptor(redirect_uris=["https://other.example/cb"]),
    )
