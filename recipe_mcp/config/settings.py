"""Configuration settings for the Recipe Search MCP Server using Pydantic Settings.

This module provides type-safe configuration management with automatic validation
and environment variable loading.
"""

import logging
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from recipe_mcp.core.constants import (
    GEMINI_EMBEDDING_DIMENSION,
    GEMINI_EMBEDDING_MODEL,
)

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Central configuration management with Pydantic validation.

    All settings are loaded from environment variables with automatic type conversion
    and validation. Default values are provided for non-critical settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
        validate_default=True,
    )

    # ========================================
    # Debug Settings
    # ========================================
    debug: bool = Field(
        default=False,
        alias="MCP_DEBUG",
        description="Enable debug mode with verbose logging",
    )

    # ========================================
    # Server Settings
    # ========================================
    host: str = Field(
        default="0.0.0.0",
        description="Server host address",
    )

    port: int = Field(
        default=8051,
        ge=1024,
        le=65535,
        description="Server port number",
    )

    transport: str = Field(
        default="stdio",
        description="Transport mode (http, streamable-http, sse or stdio)",
    )

    # ========================================
    # Supabase Settings
    # ========================================
    supabase_url: str | None = Field(
        default=None,
        description="Supabase project URL",
    )

    supabase_key: str | None = Field(
        default=None,
        description="Supabase service key",
    )

    supabase_timeout: int = Field(
        default=10,
        ge=1,
        le=120,
        description="Timeout in seconds for Supabase requests",
    )

    # ========================================
    # Embedding Settings
    # ========================================
    google_ai_api_key: str | None = Field(
        default=None,
        description="Google AI API key for Gemini embeddings",
    )

    embedding_model: str = Field(
        default=GEMINI_EMBEDDING_MODEL,
        description="Gemini embedding model name",
    )

    embedding_dimensions: int = Field(
        default=GEMINI_EMBEDDING_DIMENSION,
        ge=1,
        le=3072,
        description="Output dimensionality of query embeddings",
    )

    embedding_timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Timeout in seconds for embedding requests",
    )

    # ========================================
    # Authentication Settings
    # ========================================
    mcp_api_key: str | None = Field(
        default=None,
        description="MCP API key for static bearer authentication",
    )

    use_oauth2: bool = Field(
        default=False,
        description="Enable OAuth2 authentication",
    )

    oauth2_issuer: str | None = Field(
        default=None,
        description="OAuth2 issuer URL",
    )

    oauth2_scopes: str = Field(
        default="read",
        description="Comma-separated list of valid OAuth2 scopes",
    )

    oauth2_required_scopes: str = Field(
        default="",
        description="Comma-separated list of required OAuth2 scopes",
    )

    oauth_store: Literal["supabase", "memory"] = Field(
        default="supabase",
        description="Backend for OAuth clients, codes and tokens",
    )

    # ========================================
    # Validators
    # ========================================
    @field_validator("oauth2_issuer", mode="before")
    @classmethod
    def set_oauth2_issuer(cls, v: str | None, info: Any) -> str:
        """Set OAuth2 issuer default from host and port if not provided."""
        if v:
            return v
        host = info.data.get("host", "0.0.0.0")
        port = info.data.get("port", 8051)
        return f"https://{host}:{port}"

    # ========================================
    # Helper Methods
    # ========================================
    def has_supabase_config(self) -> bool:
        """Check if Supabase environment variables are configured."""
        return all([self.supabase_url, self.supabase_key])

    def get_oauth2_scopes_list(self) -> list[str]:
        """Get OAuth2 scopes as a list."""
        return [s.strip() for s in self.oauth2_scopes.split(",") if s.strip()]

    def get_oauth2_required_scopes_list(self) -> list[str]:
        """Get required OAuth2 scopes as a list."""
        return [
            s.strip() for s in self.oauth2_required_scopes.split(",") if s.strip()
        ]

    def to_dict(self) -> dict[str, Any]:
        """Export settings as a dictionary (safe version without secrets)."""
        return {
            "debug": self.debug,
            "host": self.host,
            "port": self.port,
            "transport": self.transport,
            "has_supabase": self.has_supabase_config(),
            "has_google_ai": bool(self.google_ai_api_key),
            "has_api_key": bool(self.mcp_api_key),
            "embedding_model": self.embedding_model,
            "embedding_dimensions": self.embedding_dimensions,
            "use_oauth2": self.use_oauth2,
            "oauth2_issuer": self.oauth2_issuer,
            "oauth_store": self.oauth_store,
        }


# Singleton pattern with proper typing
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance (singleton pattern)."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
        logger.info("Settings initialized from environment")
        logger.debug("OAuth store: %s", _settings_instance.oauth_store)
        if not _settings_instance.google_ai_api_key:
            logger.warning(
                "GOOGLE_AI_API_KEY is missing. Recipe search will be unavailable.",
            )
    return _settings_instance


def reset_settings() -> None:
    """Reset settings instance (useful for testing)."""
    global _settings_instance
    _settings_instance = None
