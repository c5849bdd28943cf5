"""Custom exceptions for the Recipe Search MCP server."""


class MCPToolError(Exception):
    """Custom exception for MCP tool errors that should be returned as JSON-RPC errors."""

    def __init__(self, message: str, code: int = -32000):
        self.message = message
        self.code = code
        super().__init__(message)


# ========================================
# Base Exceptions
# ========================================


class RecipeMCPError(Exception):
    """Base exception for all Recipe Search MCP errors."""


# ========================================
# OAuth Exceptions
# ========================================


class OAuthError(RecipeMCPError):
    """Base exception for the token-lifecycle engine.

    ``oauth_error`` is the OAuth 2.0 error code the protocol boundary
    reports for this failure.
    """

    oauth_error = "server_error"


class NotFoundError(OAuthError):
    """Client, authorization code or token does not exist."""

    oauth_error = "invalid_grant"


class ExpiredError(OAuthError):
    """Authorization code or token is past its expiry."""

    oauth_error = "invalid_grant"


class InvalidTokenError(OAuthError):
    """Bearer token is malformed, unknown or revoked."""

    oauth_error = "invalid_token"


class StorageError(OAuthError):
    """Backing store unreachable, timed out, or rejected the write."""

    oauth_error = "server_error"


class InvalidRequestError(OAuthError):
    """Request is missing a required parameter or carries an unusable one."""

    oauth_error = "invalid_request"

    def __init__(self, message: str, oauth_error: str | None = None):
        super().__init__(message)
        if oauth_error:
            self.oauth_error = oauth_error


# ========================================
# Database Exceptions
# ========================================


class DatabaseError(RecipeMCPError):
    """Base exception for recipe database errors."""


class VectorStoreError(DatabaseError):
    """Vector similarity lookup failed."""


# ========================================
# Validation Exceptions
# ========================================


class ConfigurationError(RecipeMCPError):
    """Configuration validation failed."""


# ========================================
# External Service Exceptions
# ========================================


class ExternalServiceError(RecipeMCPError):
    """Base exception for external service errors."""


class EmbeddingServiceError(ExternalServiceError):
    """Embedding service call failed."""
