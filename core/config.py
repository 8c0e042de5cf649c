"""
Application configuration using Pydantic Settings.

This module provides typed and validated settings for the application,
with support for environment variables and .env files.
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Literal
from urllib.parse import urlparse

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Value shipped in the example .env; treated the same as a missing key
PLACEHOLDER_API_KEY = "your_api_key_here"


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    url: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description="Full database URL (takes precedence over individual params)",
    )

    name: str = Field(default="bizops", description="Database name")
    user: str = Field(default="postgres", description="Database user")
    password: SecretStr = Field(default=SecretStr("postgres"), description="Database password")
    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port", ge=1, le=65535)

    @property
    def connection_url(self) -> str:
        """
        Get database connection URL.

        If DATABASE_URL is set, use it directly.
        Otherwise, build from individual parameters.
        """
        if self.url:
            return self.url
        return (
            f"postgresql://{self.user}:{self.password.get_secret_value()}"
            f"@{self.host}:{self.port}/{self.name}"
        )

    @property
    def safe_url(self) -> str:
        """Get database URL without password for logging."""
        if self.url:
            parsed = urlparse(self.url)
            if parsed.password:
                return self.url.replace(f":{parsed.password}@", ":***@")
            return self.url
        return f"postgresql://{self.user}@{self.host}:{self.port}/{self.name}"


class RedisSettings(BaseSettings):
    """Redis connection settings."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")


class TaxDataSettings(BaseSettings):
    """Tax data provider and refresh schedule settings."""

    model_config = SettingsConfigDict(env_prefix="TAX_", populate_by_name=True)

    api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("APILAYER_API_KEY", "TAX_API_KEY"),
        description="APILayer Tax Data API key",
    )
    base_url: str = Field(
        default="https://api.apilayer.com/tax_data",
        description="Base URL of the tax data provider",
    )
    auto_collect_startup: bool = Field(
        default=True,
        description="Run the due-gate check once when the scheduler process starts",
    )
    collection_interval_days: int = Field(
        default=10, ge=1, description="Minimum days between two collections"
    )
    check_interval_seconds: int = Field(
        default=3600, ge=1, description="Seconds between periodic due-gate checks"
    )
    max_retries: int = Field(default=3, ge=0, description="Retries per country")
    request_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Timeout for a single provider request"
    )
    request_delay_ms: int = Field(
        default=100, ge=0, description="Pause after each country request"
    )
    max_concurrency: int = Field(
        default=4, ge=1, description="Country requests allowed in flight at once"
    )
    job_history_limit: int = Field(default=12, ge=1, description="Job results kept")

    @property
    def is_configured(self) -> bool:
        """Check if a real provider API key is configured."""
        key = self.api_key.get_secret_value().strip()
        return bool(key) and key != PLACEHOLDER_API_KEY

    @property
    def collection_interval(self) -> timedelta:
        """Refresh interval as a timedelta."""
        return timedelta(days=self.collection_interval_days)


class Settings(BaseSettings):
    """
    Main application settings.

    Aggregates all configuration sections and provides environment-specific
    settings loading.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Minimum log level"
    )
    allowed_hosts: list[str] = Field(
        default_factory=lambda: ["localhost", "127.0.0.1"],
        description="Allowed hosts",
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    tax: TaxDataSettings = Field(default_factory=TaxDataSettings)

    @field_validator("allowed_hosts", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, v: str | list[str]) -> list[str]:
        """Parse allowed hosts from comma-separated string or list."""
        if isinstance(v, str):
            return [h.strip() for h in v.split(",") if h.strip()]
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Configured Settings instance.
    """
    return Settings()
