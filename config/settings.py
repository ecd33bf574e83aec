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
    # PROMPT LIBRARY API
    # ===================
    prompt_library_url: str = Field(
        default="http://localhost:5000",
        description="Base URL of the prompt library API"
    )
    prompt_library_token: Optional[str] = Field(
        None,
        description="Bearer token forwarded to the prompt library API"
    )
    bulk_import_path: str = Field(
        default="/api/prompts/bulk-import",
        description="Path of the bulk-import endpoint"
    )
    google_import_path: str = Field(
        default="/api/prompts/google-import",
        description="Path of the Google Docs/Sheets fetch endpoint"
    )
    request_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        le=600,
        description="Timeout for outbound requests to the prompt library"
    )

    # ===================
    # FIELD ANALYSIS (LLM)
    # ===================
    anthropic_api_key: Optional[str] = Field(
        None,
        description="Anthropic API key for header analysis"
    )
    ai_field_analysis_enabled: bool = Field(
        default=False,
        description="Ask the LLM to classify headers before the rule-based mapper"
    )
    field_analysis_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Model used for header analysis"
    )

    # ===================
    # IMPORT BEHAVIOUR
    # ===================
    preview_ttl_minutes: int = Field(
        default=30,
        ge=1,
        le=1440,
        description="Minutes an import preview stays available for confirmation"
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1024,
        description="Largest accepted upload in bytes"
    )
    mapping_review_threshold: float = Field(
        default=0.8,
        ge=0,
        le=1,
        description="Overall confidence below which the mapping step is suggested"
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
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5000,http://localhost:5173",
        description="Comma-separated origins allowed to call the API"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def field_analysis_configured(self) -> bool:
        """Check if LLM header analysis can run."""
        return bool(self.ai_field_analysis_enabled and self.anthropic_api_key)

    @property
    def cors_origin_list(self) -> list[str]:
        """Allowed CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
