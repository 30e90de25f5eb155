"""Configuration management for the user gap engine."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")
    SUPABASE_QUERY_TIMEOUT_SECONDS: int = Field(
        default=20, description="PostgREST request timeout for datastore reads"
    )

    # Anthropic configuration (optional: empty key means fallback-only mode)
    ANTHROPIC_API_KEY: str = Field(default="", description="Anthropic API key")
    ANTHROPIC_TIMEOUT_SECONDS: float = Field(
        default=60.0, description="HTTP timeout applied by the Anthropic client"
    )

    # Environment
    GAP_ENGINE_ENV: str = Field(default="dev", description="Environment: dev, staging, prod, test")

    # Gap detection configuration
    GAP_MODEL: str = Field(
        default="claude-sonnet-4-20250514", description="Model for gap questions and analysis"
    )
    GAP_QUESTION_MAX_TOKENS: int = Field(
        default=500, description="Max output tokens for the single gap question"
    )
    GAP_ANALYSIS_MAX_TOKENS: int = Field(
        default=900, description="Max output tokens for the three-gap analysis"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
