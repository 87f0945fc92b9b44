"""
Configuration Management for the FleetX client core

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every tunable the session, fetch and mutation layers read (backend URL,
timeouts, retry policy, local state path, double-tap window) is declared
once and validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """Remote REST backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FLEETX_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="http://localhost:5000/api",
        description="Base URL of the fleet backend, including the /api prefix"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Per-request timeout"
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for idempotent requests (GET/DELETE) on network failure"
    )
    retry_backoff_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Multiplier for exponential backoff between attempts"
    )

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Endpoint paths are joined with a leading slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got {v!r}")
        return v.rstrip("/")


class StorageSettings(BaseSettings):
    """Local persisted state configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FLEETX_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    state_path: Path = Field(
        default=Path("~/.fleetx/state.json"),
        description="JSON file holding the session credential and the welcome flag"
    )

    @property
    def resolved_state_path(self) -> Path:
        return self.state_path.expanduser()


class InteractionSettings(BaseSettings):
    """Gesture timing used by the mutation coordinator."""

    model_config = SettingsConfigDict(
        env_prefix="FLEETX_INTERACTION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    double_tap_window_ms: int = Field(
        default=300,
        ge=50,
        le=2000,
        description="Maximum gap between two taps on the same item to count as a double tap"
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
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )

    # Summaries
    default_summary_period: str = Field(
        default="monthly",
        pattern="^(daily|weekly|monthly|yearly)$",
        description="Period requested from the driver summary endpoints"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
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

    # Sub-settings are loaded lazily so that one broken section
    # does not prevent reading the others.

    @property
    def api(self) -> ApiSettings:
        return ApiSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def interaction(self) -> InteractionSettings:
        return InteractionSettings()

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


def validate_all_settings() -> dict[str, Union[bool, str]]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid} plus
    `<name>_error` entries for the failing sections.
    Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("api", "storage", "interaction", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
