"""Pydantic models for OAuth entity storage.

These models define the structure for persistent storage of OAuth entities
(clients, authorization codes, access and refresh tokens) and the values the
token-lifecycle components hand back to their callers.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from recipe_mcp.core.constants import (
    CLIENT_SECRET_NEVER_EXPIRES,
    TOKEN_TYPE_BEARER,
)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock for the OAuth components."""
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class TokenKind(str, Enum):
    """Kind of a stored token row."""

    ACCESS = "access"
    REFRESH = "refresh"


class ClientDescriptor(BaseModel):
    """Client metadata supplied at dynamic registration (RFC 7591)."""

    redirect_uris: list[str] = Field(default_factory=list)
    client_name: str | None = None
    token_endpoint_auth_method: str | None = None
    grant_types: list[str] | None = None
    response_types: list[str] | None = None
    scope: str | None = None


class StoredClient(BaseModel):
    """OAuth client stored in persistent storage."""

    client_id: str
    client_secret: str
    client_id_issued_at: int
    client_secret_expires_at: int = CLIENT_SECRET_NEVER_EXPIRES
    redirect_uris: list[str] = Field(default_factory=list)
    client_name: str | None = None
    token_endpoint_auth_method: str
    grant_types: list[str]
    response_types: list[str]
    scope: str | None = None


class StoredAuthCode(BaseModel):
    """Authorization code stored in persistent storage."""

    code: str
    client_id: str
    redirect_uri: str
    redirect_uri_provided_explicitly: bool = True
    code_challenge: str
    scopes: list[str] = Field(default_factory=list)
    state: str | None = None
    resource: str | None = None
    expires_at: datetime

    @field_validator("scopes", mode="before")
    @classmethod
    def null_scopes_are_empty(cls, v: list[str] | None) -> list[str]:
        return v or []

    @field_validator("expires_at")
    @classmethod
    def expires_at_is_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class StoredToken(BaseModel):
    """Access or refresh token stored in persistent storage.

    ``related_token`` points at the other member of the pair.
    """

    token: str
    token_type: TokenKind
    client_id: str
    scopes: list[str] = Field(default_factory=list)
    resource: str | None = None
    expires_at: datetime
    revoked: bool = False
    related_token: str | None = None

    @field_validator("scopes", mode="before")
    @classmethod
    def null_scopes_are_empty(cls, v: list[str] | None) -> list[str]:
        return v or []

    @field_validator("expires_at")
    @classmethod
    def expires_at_is_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class TokenPair(BaseModel):
    """Freshly minted access/refresh pair as returned by the token endpoint."""

    access_token: str
    token_type: str = TOKEN_TYPE_BEARER
    expires_in: int
    refresh_token: str
    scope: str


class VerifiedAccess(BaseModel):
    """Result of verifying a bearer access token."""

    token: str
    client_id: str
    scopes: list[str]
    expires_at: int
    resource: str | None = None
