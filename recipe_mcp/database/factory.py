"""
Factory for the storage backends.

The backend is chosen from settings once at startup and then passed to every
component that needs it.
"""

import logging

from recipe_mcp.config import Settings, get_settings
from recipe_mcp.core.exceptions import ConfigurationError

from .base import OAuthStore
from .memory_adapter import InMemoryOAuthStore
from .supabase_adapter import SupabaseAdapter

logger = logging.getLogger(__name__)


async def create_supabase_adapter(settings: Settings | None = None) -> SupabaseAdapter:
    """
    Create and initialize the Supabase adapter.

    Raises:
        ConfigurationError: If SUPABASE_URL or SUPABASE_KEY is missing
    """
    settings = settings or get_settings()
    if not settings.has_supabase_config():
        msg = "SUPABASE_URL and SUPABASE_KEY must be set"
        raise ConfigurationError(msg)

    adapter = SupabaseAdapter(
        settings.supabase_url,
        settings.supabase_key,
        timeout=settings.supabase_timeout,
    )
    await adapter.initialize()
    return adapter


async def create_oauth_store(
    settings: Settings | None = None,
    supabase: SupabaseAdapter | None = None,
) -> OAuthStore:
    """
    Create the OAuth store selected by ``OAUTH_STORE``.

    Args:
        settings: Settings to read (defaults to the cached settings)
        supabase: Already initialized adapter to reuse for the supabase backend

    Returns:
        An OAuthStore implementation
    """
    settings = settings or get_settings()

    if settings.oauth_store == "memory":
        logger.warning("OAuth state is kept in memory and lost on restart")
        return InMemoryOAuthStore()

    if supabase is None:
        supabase = await create_supabase_adapter(settings)
    logger.info("OAuth state is stored in Supabase")
    return supabase
