"""
Configuration Management for Personal Budget Manager

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Session defaults (income, overall budget, starter categories), the
admission thresholds and the storage location all live in one place, so
nothing in the ledger hard-codes a number the user might want to change.
"""

from functools import lru_cache
from decimal import Decimal
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Defaults and thresholds for the ledger engine."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Session defaults (used when nothing has been persisted yet)
    default_income: Decimal = Field(
        default=Decimal("1000"),
        ge=0,
        description="Income used for a brand new ledger"
    )
    default_overall_budget: Decimal = Field(
        default=Decimal("500"),
        ge=0,
        description="Overall budget ceiling used for a brand new ledger"
    )
    default_categories: str = Field(
        default="Food,Transport,Rent",
        description="Comma-separated list of starter categories"
    )

    # Admission control
    default_category_ceiling: Decimal = Field(
        default=Decimal("100"),
        ge=0,
        description="Ceiling applied to a category without an explicit budget"
    )
    revalidate_on_update: bool = Field(
        default=True,
        description="Re-check the category ceiling when an expense is edited"
    )

    # Band thresholds (percent of ceiling)
    warning_threshold: Decimal = Field(
        default=Decimal("75"),
        ge=0,
        le=100,
        description="Percentage at which a category turns ORANGE"
    )
    limit_threshold: Decimal = Field(
        default=Decimal("100"),
        ge=0,
        le=100,
        description="Percentage at which a category turns RED"
    )

    @field_validator('default_categories')
    @classmethod
    def validate_default_categories(cls, v: str) -> str:
        """Require at least one non-blank starter category."""
        if not any(part.strip() for part in v.split(",")):
            raise ValueError("At least one default category is required")
        return v

    @property
    def default_categories_list(self) -> list[str]:
        """Get starter categories as a de-duplicated list, order preserved."""
        seen: list[str] = []
        for part in self.default_categories.split(","):
            name = part.strip()
            if name and name not in seen:
                seen.append(name)
        return seen


class StorageSettings(BaseSettings):
    """Key-value store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="json",
        pattern="^(json|memory)$",
        description="Which key-value store backs the ledger"
    )
    data_path: Path = Field(
        default=Path("data/budget_manager.json"),
        description="Location of the JSON store file"
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts made for a store read/write before giving up"
    )


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

    # Logging
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level emitted by the structured logger"
    )
    log_json: bool = Field(
        default=True,
        description="Render log lines as JSON (False gives console output)"
    )

    @field_validator('log_level', mode='before')
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return str(v).upper()


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
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

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

    Uses LRU cache to ensure settings are only loaded once.
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

    for name in ("ledger", "storage", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
