"""Storage backends for OAuth state and recipe search."""

from .base import OAuthStore, RecipeDatabase
from .factory import create_oauth_store, create_supabase_adapter
from .memory_adapter import InMemoryOAuthStore
from .supabase_adapter import SupabaseAdapter

__all__ = [
    "InMemoryOAuthStore",
    "OAuthStore",
    "RecipeDatabase",
    "SupabaseAdapter",
    "create_oauth_store",
    "create_supabase_adapter",
]
