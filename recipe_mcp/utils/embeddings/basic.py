"""Query embedding creation using the Google Gemini embedding API."""

import logging

import httpx

from recipe_mcp.config import get_settings
from recipe_mcp.core.exceptions import EmbeddingServiceError

from .config import (
    get_embed_content_url,
    get_embedding_dimensions,
    get_embedding_model,
)

logger = logging.getLogger(__name__)


async def create_embedding(
    text: str,
    *,
    client: httpx.AsyncClient | None = None,
    api_key: str | None = None,
) -> list[float]:
    """
    Create an embedding for a single text in one API call.

    The request format matches the one used to embed the stored recipes, so
    query and recipe vectors are comparable.

    Args:
        text: Text to embed
        client: HTTP client to reuse (a short-lived one is created otherwise)
        api_key: Google AI API key (defaults to GOOGLE_AI_API_KEY)

    Returns:
        The embedding values

    Raises:
        EmbeddingServiceError: If the request fails or returns no embedding
    """
    settings = get_settings()
    api_key = api_key or settings.google_ai_api_key
    if not api_key:
        msg = "GOOGLE_AI_API_KEY is not configured"
        raise EmbeddingServiceError(msg)

    model = get_embedding_model()
    payload = {
        "content": {"parts": [{"text": text}]},
        "output_dimensionality": get_embedding_dimensions(),
    }

    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=settings.embedding_timeout)
    try:
        response = await http.post(
            get_embed_content_url(model),
            params={"key": api_key},
            json=payload,
        )
    except httpx.HTTPError as e:
        msg = f"Failed to generate embedding: {e}"
        raise EmbeddingServiceError(msg) from e
    finally:
        if owns_client:
            await http.aclose()

    if response.status_code != httpx.codes.OK:
        msg = f"Failed to generate embedding: {response.status_code} - {response.text}"
        raise EmbeddingServiceError(msg)

    try:
        values = response.json()["embedding"]["values"]
    except (ValueError, KeyError, TypeError) as e:
        msg = "Failed to generate embedding: malformed response"
        raise EmbeddingServiceError(msg) from e

    logger.debug("Embedding generated (%d dimensions)", len(values))
    return values
