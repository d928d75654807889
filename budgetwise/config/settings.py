"""
Configuration Management for BudgetWise

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Where data lives and how the derived views behave is visible in one place,
and invalid values are rejected at startup.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGETWISE_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="sqlite",
        description="Storage backend: 'sqlite' or 'memory'"
    )
    db_path: str = Field(
        default="budgetwise.db",
        description="Path to the SQLite database file"
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How often a locked database write is attempted"
    )
    timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="SQLite busy timeout"
    )

    @field_validator('backend')
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Only known backends are accepted."""
        v = v.strip().lower()
        if v not in {"sqlite", "memory"}:
            raise ValueError(f"Unknown storage backend: {v}. Allowed: sqlite, memory")
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Display
    currency: str = Field(
        default="EUR",
        min_length=3,
        max_length=3,
        description="ISO currency code used when formatting amounts"
    )

    # Statistics
    statistics_years: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Number of years shown in the yearly statistics view"
    )

    # Export
    export_version: str = Field(
        default="1.0.0",
        description="Version string written into export files"
    )

    # Recurring items
    process_recurring_on_load: bool = Field(
        default=True,
        description="Create due recurring transactions when an account is loaded"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
