"""
Configuration management for Bang Tutor

Uses pydantic-settings for environment variable parsing and validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMConfig(BaseSettings):
    """Configuration for a single LLM provider."""

    model_config = SettingsConfigDict(extra="ignore")

    provider: Literal["anthropic", "openai", "openrouter"] = "anthropic"
    model: str = "claude-sonnet-4-20250514"
    api_key: str = ""
    base_url: str | None = None
    max_tokens: int = 4096
    temperature: float = 0.7


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # Application
    app_name: str = "Bang-Tutor"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 3001

    # LLM Providers (API Keys)
    anthropic_api_key: str = Field(default="", description="Anthropic API key for Claude")
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openrouter_api_key: str = Field(default="", description="OpenRouter API key")

    # Default model settings
    default_provider: Literal["anthropic", "openai", "openrouter"] = "anthropic"
    default_model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 4096
    temperature: float = 0.7

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/bang.db",
        description="Database connection URL"
    )

    # Content store and version control
    content_root: str = Field(default="data", description="Directory holding one folder per topic")
    git_repo_dir: str = Field(default=".", description="Working tree the content root lives in")
    git_enabled: bool = Field(default=True, description="Commit content changes on session end")
    git_push_enabled: bool = Field(default=True, description="Push after a successful commit")

    # Tutor
    native_language: str = Field(default="en", description="ISO 639-1 code of the learner's language")
    tool_call_timeout_seconds: float | None = Field(
        default=None,
        description="Give up on an unanswered client tool call after this many seconds (unset waits forever)",
    )
    max_tool_iterations: int = Field(default=25, description="Max tool round-trips per agent turn")

    @field_validator("tool_call_timeout_seconds", mode="before")
    @classmethod
    def parse_timeout(cls, v):
        if v in ("", None, 0, "0"):
            return None
        return v

    @property
    def content_path(self) -> Path:
        """Absolute path of the content root."""
        return Path(self.content_root).expanduser().resolve()

    def get_llm_config(self, provider: str | None = None) -> LLMConfig:
        """Get LLM configuration for a provider."""
        provider = provider or self.default_provider

        api_key_map = {
            "anthropic": self.anthropic_api_key,
            "openai": self.openai_api_key,
            "openrouter": self.openrouter_api_key,
        }

        model_map = {
            "anthropic": self.default_model,
            "openai": "gpt-4o",
            "openrouter": "anthropic/claude-sonnet-4",
        }

        base_url_map = {
            "anthropic": None,
            "openai": None,
            "openrouter": "https://openrouter.ai/api/v1",
        }

        return LLMConfig(
            provider=provider,  # type: ignore
            model=model_map.get(provider, self.default_model),
            api_key=api_key_map.get(provider, ""),
            base_url=base_url_map.get(provider),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
