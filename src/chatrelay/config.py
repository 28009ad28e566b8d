"""
Application Configuration Module

Centralizes all chatrelay settings using Pydantic Settings.
Environment variables are loaded from a .env file automatically.

Usage:
    from chatrelay.config import get_settings

    settings = get_settings()
    print(settings.CHAT_API_ENDPOINT)
"""

from functools import lru_cache

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Variable names are case-insensitive.
    """

    # ==========================================================================
    # Upstream API
    # ==========================================================================
    CHAT_API_ENDPOINT: str = Field(
        default="https://api.placeholder-chat-service.com/v1/chat/completions",
        description="Full URL of the chat-completions endpoint",
    )
    CHAT_API_KEY: str = Field(
        default="placeholder-api-key",
        description="Bearer token sent with every upstream request",
    )
    CHAT_MODEL: str = Field(
        default="gpt-3.5-turbo",
        description="Model identifier sent with every request",
    )
    CHAT_API_TIMEOUT: int = Field(
        default=30000,
        gt=0,
        description="Upstream request timeout in milliseconds",
    )

    # ==========================================================================
    # Chat Behavior
    # ==========================================================================
    CHAT_MAX_HISTORY: int = Field(
        default=20,
        ge=1,
        description="Maximum number of messages kept per session",
    )
    CHAT_TEMPERATURE: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Default sampling temperature",
    )
    CHAT_MAX_TOKENS: int = Field(
        default=500,
        gt=0,
        description="Default maximum tokens for a reply",
    )
    CHAT_DEFAULT_CONTEXT: str = Field(
        default="travel",
        description="Prompt context tag used when a request names none",
    )
    CHAT_DEFAULT_LANGUAGE: str = Field(
        default="en",
        description="Language that never triggers a respond-in instruction",
    )

    # ==========================================================================
    # Feature Flags
    # ==========================================================================
    CHAT_HISTORY_ENABLED: bool = Field(
        default=True,
        description="Send stored conversation history upstream",
    )
    CHAT_USER_CONTEXT_ENABLED: bool = Field(
        default=True,
        description="Personalize system prompts with caller-supplied user info",
    )

    # ==========================================================================
    # Server
    # ==========================================================================
    CHAT_LOG_LEVEL: str = Field(default="INFO", description="Root log level")
    CHAT_HOST: str = Field(default="0.0.0.0", description="HTTP bind address")
    CHAT_PORT: int = Field(default=8000, description="HTTP port")

    @property
    def api_timeout_seconds(self) -> float:
        return self.CHAT_API_TIMEOUT / 1000

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
