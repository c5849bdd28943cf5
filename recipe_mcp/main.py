"""
Main entry point for the Recipe Search MCP server.

Builds the storage backends once, selects the authentication mode from
settings, registers the tools and runs the configured transport.
"""

import asyncio
import sys
import traceback

from fastmcp import FastMCP
from fastmcp.server.auth import AuthProvider, StaticTokenVerifier
from mcp.server.auth.settings import ClientRegistrationOptions, RevocationOptions

from recipe_mcp.auth import PersistentOAuthProvider
from recipe_mcp.config import Settings, get_settings
from recipe_mcp.core import logger
from recipe_mcp.database import (
    SupabaseAdapter,
    create_oauth_store,
    create_supabase_adapter,
)
from recipe_mcp.tools import register_tools

SERVER_NAME = "Recipe Search MCP Server"

# Normalize transport names to FastMCP Transport literals
TRANSPORT_MAP = {
    "http": "streamable-http",
    "streamable-http": "streamable-http",
    "sse": "sse",
    "stdio": "stdio",
}


async def create_auth(
    settings: Settings,
    supabase: SupabaseAdapter | None,
) -> tuple[AuthProvider | None, str]:
    """
    Build the authentication provider selected by settings.

    Returns:
        The provider (or None) and a label for the auth mode
    """
    if settings.use_oauth2:
        # Mode 1: OAuth Provider with DCR (for remote MCP clients)
        logger.info("Configuring OAuth Provider with Dynamic Client Registration...")
        store = await create_oauth_store(settings, supabase=supabase)

        auth = PersistentOAuthProvider(
            store=store,
            base_url=settings.oauth2_issuer or "",
            issuer_url=settings.oauth2_issuer,
            service_documentation_url=f"{settings.oauth2_issuer}/docs",
            client_registration_options=ClientRegistrationOptions(
                enabled=True,
                valid_scopes=settings.get_oauth2_scopes_list(),
            ),
            revocation_options=RevocationOptions(enabled=True),
            required_scopes=settings.get_oauth2_required_scopes_list() or None,
        )
        logger.info("✓ OAuth Provider enabled")
        logger.info("  - Issuer: %s", settings.oauth2_issuer)
        logger.info("  - Valid scopes: %s", ", ".join(settings.get_oauth2_scopes_list()))
        logger.info("  - Store: %s", settings.oauth_store)
        return auth, "oauth2"

    if settings.mcp_api_key:
        # Mode 2: Static Token Verifier (simple API key)
        logger.info("Configuring Static Token Verifier...")
        auth = StaticTokenVerifier(
            tokens={
                settings.mcp_api_key: {
                    "client_id": "mcp-client",
                    "scopes": settings.get_oauth2_scopes_list(),
                    "expires_at": None,
                },
            },
        )
        return auth, "api_key"

    # Mode 3: No authentication
    if settings.transport.lower() != "stdio":
        logger.warning("⚠ No authentication configured - server is open to all!")
        logger.warning("  Set USE_OAUTH2=true for OAuth or MCP_API_KEY for API key auth")
    return None, "none"


async def create_mcp_server(settings: Settings | None = None) -> FastMCP:
    """
    Create the MCP server with storage, authentication and tools wired in.
    """
    settings = settings or get_settings()

    supabase: SupabaseAdapter | None = None
    if settings.has_supabase_config():
        supabase = await create_supabase_adapter(settings)
    else:
        logger.warning("SUPABASE_URL/SUPABASE_KEY missing - recipe search disabled")

    auth, auth_mode = await create_auth(settings, supabase)

    mcp = FastMCP(SERVER_NAME, auth=auth)
    register_tools(mcp, supabase)
    logger.info("FastMCP server initialized successfully (auth mode: %s)", auth_mode)
    return mcp


async def main() -> None:
    """
    Main async function to run the MCP server.
    """
    settings = get_settings()
    logger.info("Main function started")
    logger.debug("Settings: %s", settings.to_dict())

    mcp = await create_mcp_server(settings)

    transport = settings.transport.lower()
    fastmcp_transport = TRANSPORT_MAP.get(transport, "stdio")
    logger.info("Transport mode: %s", fastmcp_transport)

    sys.stdout.flush()
    sys.stderr.flush()

    if fastmcp_transport in ("streamable-http", "sse"):
        logger.info(
            "Setting up %s server on %s:%s...",
            fastmcp_transport,
            settings.host,
            settings.port,
        )
        await mcp.run_async(
            transport=fastmcp_transport,  # type: ignore[arg-type]
            host=settings.host,
            port=settings.port,
        )
    else:
        logger.info("Setting up stdio server...")
        await mcp.run_async(transport="stdio")


def run() -> None:
    """Console script entry point."""
    try:
        logger.info("Starting main function...")
        asyncio.run(main())
    except Exception as e:
        logger.error("Error in main: %s", e)
        logger.error("Traceback: %s", traceback.format_exc())
        sys.exit(1)


if __name__ == "__main__":
    run()
