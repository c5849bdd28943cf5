"""Core functionality for the Recipe Search MCP server."""

from .constants import (
    ACCESS_TOKEN_TTL_SECONDS,
    AUTHORIZATION_CODE_TTL_SECONDS,
    MATCH_COUNT_DEFAULT,
    MATCH_THRESHOLD_DEFAULT,
    REFRESH_TOKEN_TTL_SECONDS,
)
from .decorators import track_request
from .exceptions import (
    ExpiredError,
    InvalidRequestError,
    InvalidTokenError,
    MCPToolError,
    NotFoundError,
    OAuthError,
    RecipeMCPError,
    StorageError,
)
from .logging import configure_logging, logger, redact

__all__ = [
    # Core
    "MCPToolError",
    "configure_logging",
    "logger",
    "redact",
    "track_request",
    # OAuth error taxonomy
    "ExpiredError",
    "InvalidRequestError",
    "InvalidTokenError",
    "NotFoundError",
    "OAuthError",
    "RecipeMCPError",
    "StorageError",
    # Constants - most commonly used
    "ACCESS_TOKEN_TTL_SECONDS",
    "AUTHORIZATION_CODE_TTL_SECONDS",
    "MATCH_COUNT_DEFAULT",
    "MATCH_THRESHOLD_DEFAULT",
    "REFRESH_TOKEN_TTL_SECONDS",
]
