"""OAuth authentication module with persistent storage.

This module provides the OAuth 2.0 authorization server used by the Recipe
Search MCP server when it is deployed remotely: dynamic client registration,
authorization codes with PKCE, access/refresh token pairs with rotation, and
revocation.
"""

from recipe_mcp.auth.clients import ClientRegistry
from recipe_mcp.auth.codes import AuthorizationCodeManager
from recipe_mcp.auth.provider import PersistentOAuthProvider
from recipe_mcp.auth.tokens import TokenManager

__all__ = [
    "AuthorizationCodeManager",
    "ClientRegistry",
    "PersistentOAuthProvider",
    "TokenManager",
]
