"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./storymode.db"

    # Access tokens are issued by the hosted auth platform; we only verify them
    jwt_secret: str = "change-this-in-production-minimum-32-characters-long"
    jwt_algorithm: str = "HS256"
    jwt_audience: Optional[str] = "authenticated"

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    content_generation_timeout_seconds: float = 60.0

    # Story engine
    progress_write_timeout_seconds: float = 10.0
    session_ttl_seconds: int = 4 * 3600

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Story Mode Service"
    version: str = "0.1.0"

    # Rate limiting
    rate_limit_api_per_minute: int = 120       # per user or IP for general API
    rate_limit_generation_per_hour: int = 30   # per user, model calls only (cache hits are free)
    rate_limit_enabled: bool = True

    @property
    def openai_configured(self) -> bool:
        key = (self.openai_api_key or "").strip()
        return bool(key and not key.startswith("sk-your-"))


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
