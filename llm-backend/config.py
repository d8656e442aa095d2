"""
Configuration management for BoringCourse backend.

Centralizes all configuration using Pydantic settings with environment variable support.
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./boringcourse.db",
        description="SQLAlchemy connection URL (history storage)"
    )
    db_pool_size: int = Field(
        default=5,
        description="Database connection pool size (ignored for SQLite)"
    )
    db_max_overflow: int = Field(
        default=10,
        description="Maximum overflow connections (ignored for SQLite)"
    )
    db_pool_timeout: int = Field(
        default=30,
        description="Connection pool timeout in seconds"
    )

    # API Configuration
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8000,
        description="API server port"
    )

    # LLM Configuration
    openai_api_key: str = Field(
        default="",
        description="OpenAI API key (required at runtime)"
    )
    gemini_api_key: str = Field(
        default="",
        description="Google Gemini API key (optional)"
    )
    llm_provider: str = Field(
        default="openai",
        description="Generative provider: openai or google"
    )
    llm_model: str = Field(
        default="gpt-5-mini",
        description="Model used for study artifacts"
    )
    llm_timeout_seconds: int = Field(
        default=90,
        description="Per-attempt timeout for generative calls"
    )
    llm_max_retries: int = Field(
        default=2,
        description="Attempts per generative call (1 = no retry)"
    )
    guide_max_output_tokens: int = Field(
        default=3600,
        description="Output token budget for study guide generation"
    )
    guide_reasoning_effort: str = Field(
        default="low",
        description="Reasoning effort for study guide generation"
    )

    # Canvas (grading system) Configuration
    canvas_base_url: str = Field(
        default="",
        description="Canvas instance base URL, overridable per request"
    )
    canvas_api_token: str = Field(
        default="",
        description="Canvas API token, overridable per request"
    )
    canvas_timeout_seconds: int = Field(
        default=30,
        description="HTTP timeout for Canvas requests"
    )

    # Study guide scoping
    scope_lookahead_days: int = Field(
        default=10,
        description="Days ahead of today searched for the target assessment"
    )
    history_limit: int = Field(
        default=100,
        description="Maximum history items kept per user"
    )

    # Application Settings
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the global settings instance.

    Returns:
        Settings: Application settings
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings():
    """Reset the global settings instance (useful for testing)."""
    global _settings
    _settings = None


def validate_required_settings():
    """
    Validate that all required settings are present at runtime.

    Should be called after settings are loaded but before application starts.
    Raises ValueError if required settings are missing.
    """
    settings = get_settings()

    if settings.llm_provider not in ("openai", "google"):
        raise ValueError(f"LLM_PROVIDER must be 'openai' or 'google', got '{settings.llm_provider}'")

    if settings.llm_provider == "openai" and not settings.openai_api_key:
        raise ValueError(
            "OPENAI_API_KEY environment variable is required but not set. "
            "Please ensure the secret is configured in your environment or .env file."
        )

    if settings.llm_provider == "google" and not settings.gemini_api_key:
        raise ValueError("GEMINI_API_KEY is required when LLM_PROVIDER=google")

    if not settings.database_url:
        raise ValueError("DATABASE_URL is required but not set")

    return True
