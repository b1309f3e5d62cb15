"""
Centralized configuration management.
All environment variables and settings are defined here.
"""
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="Safe Transaction Gateway", alias="APP_NAME")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Upstream services
    chain_id: str = Field(default="1", alias="CHAIN_ID")
    transaction_service_url: str = Field(
        default="https://safe-transaction-mainnet.safe.global",
        alias="TRANSACTION_SERVICE_URL",
    )
    swaps_api_url: str = Field(default="https://api.cow.fi/mainnet", alias="SWAPS_API_URL")
    swaps_explorer_url: str = Field(default="https://explorer.cow.fi", alias="SWAPS_EXPLORER_URL")
    swaps_settlement_contracts: List[str] = Field(
        default=["0x9008D19f58AAbD9eD0D60971565AA8510560ab41"],
        alias="SWAPS_SETTLEMENT_CONTRACTS",
    )
    http_timeout: float = Field(default=10.0, alias="HTTP_TIMEOUT")
    http_retry_attempts: int = Field(default=1, alias="HTTP_RETRY_ATTEMPTS")

    # Caching
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    cache_ttl_seconds: int = Field(default=60, alias="CACHE_TTL_SECONDS")
    invalidate_cache_on_validation_error: bool = Field(
        default=False, alias="INVALIDATE_CACHE_ON_VALIDATION_ERROR"
    )

    # Processing
    max_concurrent_requests: int = Field(default=5, alias="MAX_CONCURRENT_REQUESTS")
    default_page_size: int = Field(default=20, alias="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=100, alias="MAX_PAGE_SIZE")
    human_descriptions_enabled: bool = Field(default=True, alias="HUMAN_DESCRIPTIONS_ENABLED")

    # Imitation detection
    imitation_prefix_length: int = Field(default=3, alias="IMITATION_PREFIX_LENGTH")
    imitation_suffix_length: int = Field(default=4, alias="IMITATION_SUFFIX_LENGTH")
    imitation_max_edit_distance: int = Field(default=2, alias="IMITATION_MAX_EDIT_DISTANCE")
    imitation_value_tolerance: float = Field(default=0.0, alias="IMITATION_VALUE_TOLERANCE")
    imitation_echo_limit: float = Field(default=10.0, alias="IMITATION_ECHO_LIMIT")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v_upper

    @field_validator("transaction_service_url", "swaps_api_url", "swaps_explorer_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        """Base URLs are joined with absolute paths."""
        return v.rstrip("/")

    @field_validator("http_timeout")
    @classmethod
    def validate_timeout(cls, v):
        """Validate upstream timeout."""
        if v <= 0:
            raise ValueError("HTTP timeout must be positive")
        return v

    @field_validator("http_retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v):
        """At least one attempt is always made."""
        if v < 1:
            raise ValueError("HTTP retry attempts must be at least 1")
        return v

    @field_validator("cache_ttl_seconds")
    @classmethod
    def validate_cache_ttl(cls, v):
        if v < 0:
            raise ValueError("Cache TTL cannot be negative")
        return v

    @field_validator("max_concurrent_requests")
    @classmethod
    def validate_concurrency(cls, v):
        """Validate concurrency setting."""
        if v < 1:
            raise ValueError("Max concurrent requests must be at least 1")
        if v > 50:
            raise ValueError("Max concurrent requests should not exceed 50")
        return v

    @field_validator("default_page_size", "max_page_size")
    @classmethod
    def validate_page_size(cls, v):
        if v < 1:
            raise ValueError("Page size must be at least 1")
        return v

    @field_validator("imitation_value_tolerance")
    @classmethod
    def validate_value_tolerance(cls, v):
        """Tolerance is relative to the larger of the two amounts."""
        if not (0.0 <= v <= 1.0):
            raise ValueError("Imitation value tolerance must be between 0 and 1")
        return v


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
