"""
Configuration Management for Petty Cash

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Limits and pattern-detection constants are configuration, not values
computed at runtime.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PETTY_CASH_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="file",
        pattern="^(file|memory)$",
        description="Key-value backend: 'file' or 'memory'"
    )
    data_dir: Path = Field(
        default=Path(".petty_cash"),
        description="Directory holding one JSON file per key"
    )
    expenses_key: str = Field(
        default="cajachica_expenses",
        min_length=1,
        description="Key holding the serialized expense collection"
    )
    audit_key: str = Field(
        default="cajachica_audit",
        min_length=1,
        description="Key holding the append-only audit log"
    )

    @field_validator("expenses_key", "audit_key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Keys become file names, so no path separators."""
        if "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"Invalid storage key: {v!r}")
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="PETTY_CASH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = False
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )

    # Petty cash rules
    daily_limit: Decimal = Field(
        default=Decimal("2000"),
        gt=0,
        description="Daily spending ceiling in currency units"
    )
    currency: str = Field(
        default="S/.",
        min_length=1,
    )

    # Repeat-purchase detection
    pattern_window_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Rolling window for repeat-purchase detection"
    )
    pattern_threshold: int = Field(
        default=2,
        ge=1,
        description="An item is flagged when bought MORE than this many times in the window"
    )

    default_reviewer: str = Field(
        default="Admin User",
        min_length=1,
        description="Actor recorded when a review action has no explicit user"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v


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

    # Loaded lazily so one bad section doesn't block the others

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

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for failing sections.
    """
    results = {}

    settings = get_settings()

    sections = {
        "storage": lambda: settings.storage,
        "app": lambda: settings.app,
    }
    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
