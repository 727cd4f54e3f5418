"""
Application configuration using Pydantic Settings.

This module provides typed and validated settings for the application,
with support for environment variables and .env files. Per-account channel
credentials are not read from here; they live on each Channel Account and
are validated by ``services.marketplaces.account_config``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal
from urllib.parse import urlparse

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    # Support both DATABASE_URL and individual parameters
    url: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description="Full database URL (takes precedence over individual params)",
    )

    name: str = Field(default="marketplace_sync", description="Database name")
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


class SyncSettings(BaseSettings):
    """Defaults for marketplace synchronization."""

    model_config = SettingsConfigDict(env_prefix="SYNC_")

    default_timeout: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Transport timeout in seconds when an account sets none",
    )
    max_concurrency: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Concurrent adapter calls during bulk synchronization",
    )
    link_page_size: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Page size when paginating remote offer lists",
    )
    health_history_size: int = Field(
        default=20,
        ge=1,
        description="Connection test results kept per account",
    )


class ShopifySettings(BaseSettings):
    """Shopify Admin API defaults."""

    model_config = SettingsConfigDict(env_prefix="SHOPIFY_")

    api_version: str = Field(default="2024-07", description="Admin API version")


class EbaySettings(BaseSettings):
    """eBay Sell API defaults."""

    model_config = SettingsConfigDict(env_prefix="EBAY_")

    environment: Literal["SANDBOX", "PRODUCTION"] = Field(
        default="SANDBOX", description="Default API environment"
    )
    marketplace_id: str = Field(default="EBAY_GB", description="Default marketplace ID")


class MiraklSettings(BaseSettings):
    """Mirakl operator defaults."""

    model_config = SettingsConfigDict(env_prefix="MIRAKL_")

    currency: str = Field(default="GBP", description="Default offer currency")


class LoggingSettings(BaseSettings):
    """Logging output settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Minimum log level")
    json_format: bool = Field(default=False, description="Render logs as JSON")


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

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    shopify: ShopifySettings = Field(default_factory=ShopifySettings)
    ebay: EbaySettings = Field(default_factory=EbaySettings)
    mirakl: MiraklSettings = Field(default_factory=MiraklSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

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
