"""
Configuration Management for the Expense Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
There are no persisted files; the environment (or a .env file) is the
only way to change behaviour between runs.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


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
        description="Stdlib log level for the structured logger"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (False = human-readable console output)"
    )

    # Display
    date_format: str = Field(
        default="%Y-%m-%d",
        description="strftime format used to display entry dates"
    )
    currency_symbol: str = Field(
        default="",
        description="Symbol shown next to amounts (display only)"
    )

    # Validation thresholds
    max_entry_amount: float = Field(
        default=1000000.0,
        gt=0,
        description="Absolute amount above which an entry is flagged for review"
    )
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future an entry date can be without a warning"
    )

    # Payment methods beyond the built-in cash / creditCard / transfer
    extra_payment_methods: str = Field(
        default="",
        description="Comma-separated code:Label pairs, e.g. 'debitCard:Debit card'"
    )

    # Derived views
    chart_sort_by_share: bool = Field(
        default=False,
        description="Order chart slices by size instead of first appearance"
    )
    destructive_date_filter: bool = Field(
        default=False,
        description="Replace the ledger with the filtered entries when a date range is set"
    )
    audit_trail_size: int = Field(
        default=500,
        ge=1,
        le=10000,
        description="How many audit events to keep in memory for the session"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level


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

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
