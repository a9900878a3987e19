"""Configuration package."""

from fintrack.config.settings import (
    AppSettings,
    CacheSettings,
    RemoteServiceSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "CacheSettings",
    "RemoteServiceSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
