"""Configuration management using Pydantic Settings"""

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "billing-gateway"
    log_level: str = "INFO"

    # Upstream billing API
    upstream_base_url: str = "https://api.digiflazz.com/v1"
    upstream_username: str = ""
    upstream_api_key: SecretStr = SecretStr("")

    # HTTP Client
    http_timeout_seconds: float = 30.0
    upstream_retry_attempts: int = Field(default=3, ge=1)
    upstream_backoff_seconds: float = 1.0  # Linear backoff unit: attempt_index * unit

    # Cache backend
    cache_backend: Literal["sqlite", "redis"] = "sqlite"
    cache_database_url: str = "sqlite:///./data/cache.db"
    redis_url: str = "redis://localhost:6379/0"
    redis_namespace: str = "billing-gateway:"

    # Subscriber inquiry cache policy
    inquiry_cache_enabled: bool = True
    inquiry_cache_ttl_seconds: int = Field(default=0, ge=0)  # 0 = never expire
    inquiry_cache_key_prefix: str = "pln_inquiry:"


settings = Settings()
