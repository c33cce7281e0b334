"""Application configuration.

Configuration is loaded from environment variables. For local development, you can provide a
`.env` file and set `STORMWEAVER_ENV_FILE` to point to it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Stormweaver settings.

    All fields are environment-configurable. Prefix is `STORMWEAVER_`.
    """

    model_config = SettingsConfigDict(
        env_prefix="STORMWEAVER_",
        env_file=None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO")

    # LLM
    openai_api_key: str | None = Field(default=None)
    openai_base_url: str | None = Field(default=None)
    openai_model: str = Field(default="gpt-4o")
    openai_embedding_model: str = Field(default="text-embedding-3-small")
    openai_timeout_s: float = Field(default=120.0)
    llm_max_concurrent: int = Field(default=8, ge=1, le=64)
    llm_max_retries: int = Field(default=2, ge=0, le=10)
    llm_retry_backoff_s: float = Field(default=1.0, ge=0.0, le=60.0)

    # Section generation
    context_k: int = Field(default=3, ge=1, le=20, description="Recent sections shown to the model as context")
    dedupe_threshold: float = Field(
        default=0.85, gt=0.0, le=1.0, description="Cosine similarity at which a section is regenerated"
    )
    max_attempts: int = Field(default=3, ge=1, le=10, description="Generative calls per section, first draft included")
    max_steps: int = Field(default=10, ge=1, le=50, description="Tool-calling rounds per research answer")
    token_tolerance: float = Field(
        default=0.1, ge=0.0, lt=1.0, description="Accepted deviation from a token budget, as a fraction"
    )

    # Research tools
    use_research_tools: bool = Field(default=False)
    search_provider: Literal["tavily", "duckduckgo"] = Field(default="duckduckgo")
    search_max_results: int = Field(default=5, ge=1, le=50)

    tavily_api_key: str | None = Field(default=None)
    tavily_api_base_url: str = Field(default="https://api.tavily.com")
    tavily_search_depth: Literal["basic", "advanced"] = Field(default="basic")
    tavily_timeout_s: float = Field(default=30.0, ge=1.0, le=300.0)
    tavily_max_retries: int = Field(default=3, ge=0, le=10)
    tavily_retry_backoff_s: float = Field(default=0.75, ge=0.0, le=30.0)
    tavily_retry_max_backoff_s: float = Field(default=8.0, ge=0.0, le=120.0)

    # Networking
    http_timeout_s: float = Field(default=30.0)
    http_user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/120.0.0.0 Safari/537.36"
        )
    )
    page_max_chars: int = Field(default=25_000, ge=1000, le=200_000)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level


def load_settings() -> Settings:
    """Load settings from env.

    Returns:
        Settings: Parsed settings.
    """

    env_file_override = os.getenv("STORMWEAVER_ENV_FILE")
    if env_file_override:
        env_path = Path(env_file_override)
        return Settings(_env_file=env_path)

    default_env = Path.cwd() / ".env"
    if default_env.exists():
        return Settings(_env_file=default_env)

    return Settings()
