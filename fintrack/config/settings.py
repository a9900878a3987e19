"""
Configuration Management for FinTrack

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The remote service and the local cache can each be switched off,
so a session can run remote-only, local-only, or with both.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RemoteServiceSettings(BaseSettings):
    """Remote transaction service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINTRACK_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    enabled: bool = Field(
        default=True,
        description="Try the remote service before falling back to the cache"
    )
    base_url: str = Field(
        default="http://localhost:8080/api",
        description="Base URL of the transaction API (without /transactions)"
    )
    timeout_seconds: float = Field(
        default=5.0,
        ge=0.1,
        le=120.0,
        description="Per-request timeout"
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got: {v}")
        return v.rstrip("/")


class CacheSettings(BaseSettings):
    """Durable cache configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINTRACK_CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    persistent: bool = Field(
        default=True,
        description="Store the cache on disk (False keeps it in memory only)"
    )
    path: Path = Field(
        default=Path.home() / ".fintrack" / "storage.json",
        description="File holding the key-value storage"
    )
    storage_key: str = Field(
        default="dj-fintrack-transactions",
        min_length=1,
        description="Key for the records; the counter lives under '<key>-nextId'"
    )
    max_bytes: Optional[int] = Field(
        default=5 * 1024 * 1024,
        ge=1,
        description="Storage quota in bytes (None for unlimited)"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINTRACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON instead of the console format"
    )
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future a transaction date can be before we warn"
    )
    audit_history_size: int = Field(
        default=50,
        ge=0,
        le=1000,
        description="How many recent audit events to keep for the UI"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
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

    # Sections are loaded lazily to allow partial configuration

    @property
    def remote(self) -> RemoteServiceSettings:
        return RemoteServiceSettings()

    @property
    def cache(self) -> CacheSettings:
        return CacheSettings()

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
    {setting_name}_error entries for the failing sections.
    """
    results = {}

    settings = get_settings()

    for name in ("remote", "cache", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
