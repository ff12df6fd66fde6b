"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings

from pubminer.constants import (
    DEFAULT_DETAIL_CONCURRENCY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_SUMMARY_PAGE_SIZE,
    DEFAULT_TIMEOUT,
    EUTILS_RPS_ANONYMOUS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys
    eutils_api_key: str = ""

    # E-utilities
    summary_page_size: int = DEFAULT_SUMMARY_PAGE_SIZE
    detail_concurrency: int = DEFAULT_DETAIL_CONCURRENCY
    request_timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    requests_per_second: float = EUTILS_RPS_ANONYMOUS
    cache_enabled: bool = True

    # App Settings
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        frozen = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
