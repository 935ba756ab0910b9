"""Configuration package."""

from expense_ledger.config.settings import (
    AppSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
