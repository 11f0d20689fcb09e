"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        default="http://localhost:54321",
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        default="",
        description="Supabase anon/public key"
    )
    documents_table: str = Field(
        default="user_documents",
        description="Table holding one JSON document per (user, collection)"
    )

    # ===================
    # EXTRACTION (CLAUDE)
    # ===================
    anthropic_api_key: Optional[str] = Field(
        None,
        description="Anthropic API key for price list extraction"
    )
    extraction_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Claude model used for document extraction"
    )
    extraction_max_tokens: int = Field(
        default=8192,
        ge=256,
        le=64000,
        description="Maximum tokens for the extraction response"
    )
    max_upload_mb: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Maximum size of an uploaded price list"
    )

    # ===================
    # MAPPING RULES
    # ===================
    strict_mappings: bool = Field(
        default=False,
        description=(
            "Reject writes that map two local names of one supplier "
            "to the same canonical product"
        )
    )

    # ===================
    # WORKSPACES
    # ===================
    workspace_idle_minutes: int = Field(
        default=60,
        ge=1,
        description="Close a user's cached workspace after this long without requests"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )
    cors_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://localhost:5173",
        ],
        description="Origins allowed by the CORS middleware"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def extraction_configured(self) -> bool:
        """Check if the Claude extraction API is configured."""
        return bool(self.anthropic_api_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
