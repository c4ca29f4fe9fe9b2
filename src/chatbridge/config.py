"""Application configuration using environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import AliasChoices, AnyHttpUrl, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Web search (Tavily). Missing key means every query reports a config error.
    tavily_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("TAVILY_API_KEY", "tavily_api_key"),
    )
    tavily_base_url: AnyHttpUrl = Field(
        default_factory=lambda: AnyHttpUrl("https://api.tavily.com"),
        validation_alias=AliasChoices("TAVILY_BASE_URL", "tavily_base_url"),
    )
    search_max_results: int = Field(
        default=5,
        ge=1,
        le=10,
        validation_alias=AliasChoices("SEARCH_MAX_RESULTS", "search_max_results"),
    )
    search_depth: Literal["basic", "advanced"] = Field(
        default="advanced",
        validation_alias=AliasChoices("SEARCH_DEPTH", "search_depth"),
    )
    search_topic: Literal["general", "news"] = Field(
        default="general",
        validation_alias=AliasChoices("SEARCH_TOPIC", "search_topic"),
    )

    # Long-term memory (Mem0)
    mem0_api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("MEM0_API_KEY", "mem0_api_key"),
    )
    mem0_base_url: AnyHttpUrl = Field(
        default_factory=lambda: AnyHttpUrl("https://api.mem0.ai"),
        validation_alias=AliasChoices("MEM0_BASE_URL", "mem0_base_url"),
    )

    request_timeout: float = Field(
        default=30.0,
        ge=1,
        validation_alias=AliasChoices("TOOL_REQUEST_TIMEOUT", "request_timeout"),
    )

    # Attachment download (for building provider messages)
    attachment_fetch_timeout: float = Field(
        default=30.0,
        ge=1,
        validation_alias=AliasChoices(
            "ATTACHMENT_FETCH_TIMEOUT",
            "attachment_fetch_timeout",
        ),
    )
    attachment_max_bytes: int = Field(
        default=20 * 1024 * 1024,
        ge=1,
        validation_alias=AliasChoices(
            "ATTACHMENT_MAX_BYTES",
            "attachment_max_bytes",
        ),
    )

    default_model: str = Field(
        default="gemini-2.5-flash",
        validation_alias=AliasChoices("DEFAULT_MODEL", "default_model"),
    )
    default_reasoning_level: Literal["low", "medium", "high"] = Field(
        default="medium",
        validation_alias=AliasChoices(
            "DEFAULT_REASONING_LEVEL",
            "default_reasoning_level",
        ),
    )

    @property
    def search_configured(self) -> bool:
        return bool(self.tavily_api_key and self.tavily_api_key.get_secret_value())

    @property
    def memory_configured(self) -> bool:
        return bool(self.mem0_api_key and self.mem0_api_key.get_secret_value())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["Settings", "get_settings"]
