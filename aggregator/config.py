"""Application configuration loaded from config.yaml and environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIG_YAML_PATH = PROJECT_ROOT / "config.yaml"


# --- YAML sub-models ---


class SchedulerConfig(BaseModel):
    """Feed polling cadence and batch sizing."""

    interval_seconds: float = Field(default=60.0, gt=0)
    batch_size: int = Field(default=10, ge=1)
    claim_lease_seconds: int = Field(default=45, ge=0)


class FetcherConfig(BaseModel):
    """HTTP settings for feed downloads."""

    timeout_seconds: float = 30.0
    max_redirects: int = 5
    user_agent: str = "aggregator/0.1 (+https://github.com/rowinf/blog-aggregator)"


class StoreConfig(BaseModel):
    """Database call settings."""

    timeout_seconds: float = 5.0


class PostsConfig(BaseModel):
    """Post listing defaults."""

    default_limit: int = 10


# --- Main settings ---


class Settings(BaseSettings):
    """Application settings combining .env secrets and config.yaml values."""

    # App config
    env: str = Field(default="dev")
    port: int = Field(default=8080)
    log_format: str = Field(default="text")
    enable_internal_scheduler: bool = Field(default=True)
    cors_origins: str = Field(default="*")

    # Secrets from .env
    supabase_url: str = Field(default="")
    supabase_secret_key: str = Field(default="")
    supabase_service_role_key: str = Field(default="")

    # YAML-sourced config
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    posts: PostsConfig = Field(default_factory=PostsConfig)

    model_config = {
        "env_file": str(PROJECT_ROOT / ".env"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def __init__(self, **kwargs: Any) -> None:
        yaml_data = _load_yaml_config()
        merged = {**yaml_data, **kwargs}
        super().__init__(**merged)

    @property
    def effective_supabase_secret_key(self) -> str:
        """Return the secret key, falling back to the legacy service role key."""
        return self.supabase_secret_key or self.supabase_service_role_key

    @property
    def cors_origin_list(self) -> list[str]:
        """Split the comma separated CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


def _load_yaml_config() -> dict[str, Any]:
    """Read and parse config.yaml, returning an empty dict on failure."""
    if not CONFIG_YAML_PATH.exists():
        return {}
    with CONFIG_YAML_PATH.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings singleton."""
    return Settings()
