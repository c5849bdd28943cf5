"""Embedding configuration and model utilities."""

from recipe_mcp.config import get_settings
from recipe_mcp.core.constants import GEMINI_API_BASE_URL


def get_embedding_model() -> str:
    """Get the configured embedding model.

    Returns:
        Embedding model name from settings
    """
    return get_settings().embedding_model


def get_embedding_dimensions() -> int:
    """Get the configured output dimensionality for query embeddings."""
    return get_settings().embedding_dimensions


def get_embed_content_url(model: str) -> str:
    """Build the Gemini embedContent endpoint for a model."""
    return f"{GEMINI_API_BASE_URL}/models/{model}:embedContent"
