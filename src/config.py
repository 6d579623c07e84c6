"""Application configuration using Pydantic BaseSettings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.constants import (
    DEFAULT_CHAT_BASE_URL,
    DEFAULT_CHAT_MODEL,
    DEFAULT_CONTENT_BASE_URL,
    DEFAULT_CONTENT_MODEL,
    DEFAULT_LOCAL_BASE_URL,
    DEFAULT_LOCAL_MODEL,
    DEFAULT_PAGE_FETCH_TIMEOUT_SECONDS,
    DEFAULT_PROVIDER_TIMEOUT_SECONDS,
    DEFAULT_STREAM_QUEUE_SIZE,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        # Later files override earlier ones, so .env.local takes precedence
        env_file=[".env", ".env.local"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: Literal["local", "railway", "prod"] = Field(
        default="local", description="Current environment"
    )
    log_level: str = Field(default="INFO", description="Python logging level")

    # Observability
    logfire_token: str | None = Field(
        default=None, description="Pydantic Logfire token (optional)"
    )
    sentry_dsn: str | None = Field(
        default=None, description="Sentry DSN for error tracking (optional)"
    )
    sentry_traces_sample_rate: float = Field(
        default=1.0, description="Sentry traces sample rate (0.0 to 1.0)"
    )

    # ==========================================================================
    # Provider Credentials
    # ==========================================================================
    # Used only when the request does not carry its own key.

    google_api_key: str | None = Field(
        default=None, description="API key for the content-generation provider"
    )
    openai_api_key: str | None = Field(
        default=None, description="API key for the chat-completions provider"
    )

    # ==========================================================================
    # Provider Models and Endpoints
    # ==========================================================================

    local_model: str = Field(
        default=DEFAULT_LOCAL_MODEL, description="Default local generate model"
    )
    chat_model: str = Field(
        default=DEFAULT_CHAT_MODEL, description="Default chat-completions model"
    )
    content_model: str = Field(
        default=DEFAULT_CONTENT_MODEL, description="Default content-generation model"
    )
    local_base_url: str = Field(
        default=DEFAULT_LOCAL_BASE_URL, description="Local generate API base URL"
    )
    chat_base_url: str = Field(
        default=DEFAULT_CHAT_BASE_URL, description="Chat-completions API base URL"
    )
    content_base_url: str = Field(
        default=DEFAULT_CONTENT_BASE_URL,
        description="Content-generation API base URL",
    )

    # ==========================================================================
    # Timeouts and Streaming
    # ==========================================================================

    page_fetch_timeout_seconds: float = Field(
        default=DEFAULT_PAGE_FETCH_TIMEOUT_SECONDS,
        description="HTTP timeout for fetching the audited page (seconds)",
    )
    provider_timeout_seconds: float = Field(
        default=DEFAULT_PROVIDER_TIMEOUT_SECONDS,
        description="HTTP timeout for model provider calls (seconds)",
    )
    stream_queue_size: int = Field(
        default=DEFAULT_STREAM_QUEUE_SIZE,
        ge=1,
        description="Max encoded delta records buffered between upstream and client",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
