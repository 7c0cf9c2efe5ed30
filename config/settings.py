"""Configuration management using pydantic-settings."""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # TTL cache
    cache_default_ttl_seconds: float = 300.0     # 5 minutes
    cache_sweep_interval_seconds: float = 300.0  # periodic cleanup of expired entries

    # Persistent mirror
    cache_persist_enabled: bool = True
    cache_namespace: str = "cache:"
    # SQLAlchemy URL for the durable store; None keeps the mirror in memory
    cache_database_url: Optional[str] = None

    # LRU cache
    lru_max_size: int = 100

    # Fetch defaults
    fetch_retry: int = 0
    fetch_retry_delay_seconds: float = 1.0

    # Virtual windowing
    window_overscan: int = 3

    log_level: str = "INFO"

    class Config:
        env_prefix = "DATACORE_"
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
