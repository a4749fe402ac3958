"""Application configuration."""

import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    admin_token: str
    llm_base_url: str = "https://api.siliconflow.cn/v1"
    llm_model: str = "deepseek-ai/DeepSeek-R1-Distill-Llama-70B"
    llm_temperature: float = 0.6
    llm_timeout_seconds: float = 30.0
    llm_max_attempts: int = 3
    llm_backoff_base_seconds: float = 2.0
    llm_transport: Literal["httpx", "openai"] = "httpx"
    llm_default_api_key: str | None = None
    credential_identifier: str = "pantry_chef.llm_api_key"
    cache_max_entries: int = 100
    cache_ttl_seconds: int | None = 3600
    history_limit: int = 6
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def supabase_enabled(self) -> bool:
        """Return whether Supabase credentials are configured."""
        return bool(self.supabase_url and self.supabase_service_key)
