"""Configuration management for lsp-core-lib.

Uses pydantic-settings to load configuration from environment variables and
an optional ``.env`` file. LLM settings live under the ``LLM_`` prefix, e.g.
``LLM_PROVIDER=deepseek`` or ``LLM_DEEPSEEK_API_KEY=...``.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """External model provider settings."""

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    provider: str = Field(default="deepseek", description="Primary provider name")
    request_timeout: float = Field(default=30.0, gt=0, description="Per-call time bound in seconds")
    max_retries: int = Field(default=1, ge=0)
    strict_provider_mode: bool = Field(
        default=False, description="Use only the primary provider, no fallbacks"
    )

    deepseek_api_key: Optional[SecretStr] = Field(default=None, repr=False)
    deepseek_model: str = "deepseek-chat"
    deepseek_base_url: str = "https://api.deepseek.com/v1"

    openai_api_key: Optional[SecretStr] = Field(default=None, repr=False)
    openai_model: str = "gpt-4o"
    openai_base_url: str = "https://api.openai.com/v1"

    anthropic_api_key: Optional[SecretStr] = Field(default=None, repr=False)
    anthropic_model: str = "claude-3-sonnet-20240229"
    anthropic_base_url: str = "https://api.anthropic.com/v1"


class Settings(BaseSettings):
    """Library settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    llm: LLMSettings = Field(default_factory=LLMSettings)

    # Collaborator services; clients.factory falls back to ServiceRegistry when unset
    case_store_url: Optional[str] = None
    notification_service_url: Optional[str] = None
    collaborator_timeout: float = Field(default=10.0, gt=0)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reset_settings() -> None:
    """Drop the cached settings (mainly for testing)"""
    get_settings.cache_clear()
