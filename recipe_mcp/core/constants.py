"""Application-wide constants for the Recipe Search MCP Server.

This module contains the magic values used across the codebase
for better maintainability and discoverability.
"""

# ========================================
# OAuth Lifetimes
# ========================================

AUTHORIZATION_CODE_TTL_SECONDS = 10 * 60  # Authorization codes live 10 minutes
ACCESS_TOKEN_TTL_SECONDS = 60 * 60  # Access tokens live 1 hour
REFRESH_TOKEN_TTL_SECONDS = 30 * 24 * 60 * 60  # Refresh tokens live 30 days

# ========================================
# OAuth Client Defaults
# ========================================

DEFAULT_TOKEN_ENDPOINT_AUTH_METHOD = "client_secret_post"
DEFAULT_GRANT_TYPES = ("authorization_code",)
DEFAULT_RESPONSE_TYPES = ("code",)
CLIENT_SECRET_NEVER_EXPIRES = 0

TOKEN_TYPE_BEARER = "bearer"

# ========================================
# Storage Tables
# ========================================

OAUTH_CLIENTS_TABLE = "oauth_clients"
OAUTH_CODES_TABLE = "oauth_authorization_codes"
OAUTH_TOKENS_TABLE = "oauth_tokens"
SEARCH_RECIPES_RPC = "search_recipes"

# ========================================
# Recipe Search
# ========================================

MATCH_THRESHOLD_DEFAULT = -0.1  # Minimum similarity score (-1 to 1)
MATCH_COUNT_DEFAULT = 10  # Recipes returned per query
MATCH_COUNT_MAX = 50

GEMINI_EMBEDDING_MODEL = "gemini-embedding-001"
GEMINI_EMBEDDING_DIMENSION = 768
GEMINI_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

# ========================================
# Logging
# ========================================

TOKEN_LOG_PREFIX_LENGTH = 8  # Only this many characters of a credential are logged
