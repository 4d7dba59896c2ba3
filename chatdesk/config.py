"""
Application Configuration

Pydantic-based settings management using environment variables.
Supports nested configuration, validation, and caching.

Usage:
    from chatdesk.config import get_settings

    settings = get_settings()
    print(settings.llm.default_provider)
    print(settings.storage.data_dir)
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ERROR_REPLY = "Sorry, I encountered an error. Please try again."


class LLMSettings(BaseSettings):
    """LLM provider configuration."""

    default_provider: Literal["openai", "anthropic", "local"] = Field(
        default="openai", description="Provider used to stream assistant replies"
    )

    # OpenAI configuration
    openai_api_key: str | None = Field(
        None,
        description="OpenAI API key",
        min_length=20,
    )
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI chat model")

    # Anthropic configuration
    anthropic_api_key: str | None = Field(
        None,
        description="Anthropic API key",
        min_length=20,
    )
    anthropic_model: str = Field(
        default="claude-3-5-haiku-20241022", description="Anthropic chat model"
    )

    # Local model configuration
    local_base_url: str = Field(
        default="http://localhost:11434",
        description="Base URL for local model server (Ollama, vLLM, etc.)",
    )
    local_model: str = Field(default="llama3.1:8b", description="Local model name")
    local_api_style: Literal["ollama", "openai"] = Field(
        default="ollama",
        description="Wire format of the local server (Ollama native or OpenAI-compatible)",
    )

    # Common settings
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Temperature for LLM responses",
    )
    max_tokens: int = Field(
        default=2000,
        gt=0,
        le=16000,
        description="Maximum tokens per LLM response",
    )
    timeout: int = Field(
        default=30,
        gt=0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("openai_api_key")
    @classmethod
    def validate_openai_key(cls, v: str | None) -> str | None:
        """Validate OpenAI API key format."""
        if v and not v.startswith("sk-"):
            raise ValueError("OpenAI API key must start with 'sk-'")
        return v

    @field_validator("anthropic_api_key")
    @classmethod
    def validate_anthropic_key(cls, v: str | None) -> str | None:
        """Validate Anthropic API key format."""
        if v and not v.startswith("sk-ant-"):
            raise ValueError("Anthropic API key must start with 'sk-ant-'")
        return v

    @model_validator(mode="after")
    def validate_provider_keys(self) -> "LLMSettings":
        """Ensure an API key is set for the selected hosted provider."""
        provider_key_map = {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
        }
        provider = self.default_provider
        if provider in provider_key_map and not provider_key_map[provider]:
            raise ValueError(
                f"API key required for {provider} provider. Set LLM_{provider.upper()}_API_KEY"
            )
        return self


class StorageSettings(BaseSettings):
    """Durable conversation storage configuration."""

    backend: Literal["file", "memory"] = Field(
        default="file",
        description="Key-value substrate used to persist conversations",
    )
    data_dir: Path = Field(
        default=Path.home() / ".chatdesk" / "data",
        description="Directory holding one JSON document per storage key",
    )
    key_prefix: str = Field(
        default="chats_",
        min_length=1,
        description="Prefix prepended to the user identity to form storage keys",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("data_dir")
    @classmethod
    def expand_data_dir(cls, v: Path) -> Path:
        return v.expanduser()


class ChatSettings(BaseSettings):
    """Conversation behaviour settings."""

    model: str | None = Field(
        default=None,
        description="Model selector passed with every reply request (None = provider default)",
    )
    default_title: str = Field(
        default="untitled",
        description="Title given to newly created conversations",
    )
    title_max_length: int = Field(
        default=50,
        gt=0,
        description="Maximum length of a title derived from the first user message",
    )
    error_reply: str = Field(
        default=DEFAULT_ERROR_REPLY,
        min_length=1,
        description="Assistant content written when a reply stream fails",
    )

    model_config = SettingsConfigDict(
        env_prefix="CHAT_",
        env_file=".env",
        extra="ignore",
    )


class SearchSettings(BaseSettings):
    """Full-text search settings."""

    max_results: int = Field(
        default=50,
        gt=0,
        le=1000,
        description="Maximum number of ranked results returned per query",
    )
    highlight_open: str = Field(default="<mark>", description="Marker inserted before a match")
    highlight_close: str = Field(default="</mark>", description="Marker inserted after a match")

    model_config = SettingsConfigDict(
        env_prefix="SEARCH_",
        env_file=".env",
        extra="ignore",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application log level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Log timestamp format",
    )
    file: Path | None = Field(
        default=None,
        description="Optional log file path (None = stderr only)",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    def configure(self) -> None:
        """Configure Python logging with these settings."""
        handlers: list[logging.Handler] = [logging.StreamHandler()]

        if self.file:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file))

        logging.basicConfig(
            level=getattr(logging, self.level),
            format=self.format,
            datefmt=self.date_format,
            handlers=handlers,
            force=True,
        )


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    Settings are nested by domain (llm, storage, chat, search, logging).

    Environment Variables:
        APP_NAME: Application name for logging
        DEBUG: Force DEBUG logging regardless of LOG_LEVEL
        LLM_*: LLM provider configuration (see LLMSettings)
        STORAGE_*: Conversation storage configuration (see StorageSettings)
        CHAT_*: Conversation behaviour (see ChatSettings)
        SEARCH_*: Search configuration (see SearchSettings)
        LOG_*: Logging configuration (see LoggingSettings)

    Example:
        >>> settings = get_settings()
        >>> settings.chat.default_title
        'untitled'
        >>> settings.search.max_results
        50
    """

    app_name: str = Field(
        default="ChatDesk",
        description="Application name",
    )
    debug: bool = Field(
        default=False,
        description="Log at DEBUG level",
    )

    # Nested settings
    llm: LLMSettings = Field(default_factory=LLMSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    chat: ChatSettings = Field(default_factory=ChatSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def configure_logging(self) -> "Settings":
        """Configure logging when settings are loaded."""
        if self.debug:
            self.logging.level = "DEBUG"
        self.logging.configure()
        return self

    def model_post_init(self, __context) -> None:
        """Log configuration on initialization."""
        logger = logging.getLogger(__name__)
        logger.info(
            f"Settings loaded for {self.app_name}",
            extra={
                "debug": self.debug,
                "llm_provider": self.llm.default_provider,
                "storage_backend": self.storage.backend,
            },
        )


_DOTENV_PATH = Path(__file__).resolve().parents[1] / ".env"


def _apply_dotenv_precedence() -> None:
    env_source = os.getenv("CHATDESK_ENV_SOURCE", "dotenv").lower()
    if env_source not in {"dotenv", "envfile", "file"}:
        return
    if _DOTENV_PATH.exists():
        load_dotenv(_DOTENV_PATH, override=True)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses functools.lru_cache to ensure settings are loaded only once.

    Returns:
        Settings: Singleton settings instance
    """
    _apply_dotenv_precedence()
    return Settings()


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()
