"""
Application configuration using pydantic-settings.

Loads configuration from environment variables and .env files.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Runtime environment
    environment: Literal["development", "production", "test"] = Field(
        default="development",
        description="Deployment environment; error details are hidden in production",
    )

    # Language-model provider (OpenAI-compatible)
    openai_api_key: str | None = Field(
        default=None,
        description="API key for the OpenAI-compatible provider",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the OpenAI-compatible provider",
    )
    llm_model_name: str = Field(
        default="gpt-4-turbo",
        description="Chat model used for assistant turns",
    )
    llm_temperature: float = Field(
        default=0.7,
        description="Sampling temperature for assistant turns",
    )
    llm_timeout: int = Field(
        default=120,
        description="Timeout in seconds for LLM requests",
    )
    agent_max_steps: int = Field(
        default=5,
        ge=1,
        description="Maximum provider round-trips (tool steps) within one turn",
    )

    # Speech synthesis
    tts_model_name: str = Field(
        default="tts-1",
        description="Speech synthesis model",
    )
    tts_timeout: int = Field(
        default=60,
        description="Timeout in seconds for speech synthesis requests",
    )

    # Voice capture
    speech_settle_delay: float = Field(
        default=0.5,
        ge=0.0,
        description="Seconds to wait after stopping capture for a last final result",
    )

    # HTTP server
    host: str = Field(default="127.0.0.1", description="Bind address for the HTTP server")
    port: int = Field(default=3002, description="Port for the HTTP server")

    # Application
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    @property
    def is_production(self) -> bool:
        """Whether the app runs in production mode."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
