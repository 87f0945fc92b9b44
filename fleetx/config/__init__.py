"""Configuration package."""

from fleetx.config.settings import (
    ApiSettings,
    AppSettings,
    InteractionSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "ApiSettings",
    "AppSettings",
    "InteractionSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
