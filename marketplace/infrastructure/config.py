"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    cors_origins: list[str] = ["*"]

    # Storage
    database_url: str = "postgresql+asyncpg://marketplace:marketplace_dev_password@db:5432/marketplace"
    storage_backend: Literal["sql", "memory"] = "sql"

    # Identity provider
    supabase_url: str = "http://localhost:54321"
    supabase_service_key: str = "dev-service-key-change-in-production"

    # Real-time chat
    ably_api_key: str = "dev-app.dev-key:dev-secret-change-in-production"
    ably_rest_url: str = "https://rest.ably.io"
    chat_token_ttl_ms: int = 3_600_000

    # Business rules
    max_stores_per_user: int = 2
    compensation_failure_policy: Literal["log", "raise"] = "log"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
