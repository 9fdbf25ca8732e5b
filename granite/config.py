"""
Configuration Management

Centralized configuration using Pydantic Settings. Every value can be set
through a GRANITE_* environment variable or a .env file; explicit client
arguments take precedence.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings."""

    model_config = SettingsConfigDict(
        env_prefix="GRANITE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Backend
    url: str = "http://localhost:7777"
    timeout: float = Field(default=30.0, gt=0)
    verify_ssl: bool = True

    # Schema introspection: column fetches per build
    schema_fetch_limit: int = Field(default=50, ge=1)

    # Storage
    list_page_size: int = Field(default=1000, ge=1)
    presign_expires_in: int = Field(default=3600, ge=1)

    # Logging
    log_level: str = "WARNING"


# Global settings instance
settings = Settings()
