"""Embedding utilities for semantic recipe search."""

from .basic import create_embedding
from .config import get_embedding_dimensions, get_embedding_model

__all__ = ["create_embedding", "get_embedding_dimensions", "get_embedding_model"]
