"""Configuration package."""

from billqr.config.settings import (
    LoggingSettings,
    RenderSettings,
    Settings,
    ShareSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "LoggingSettings",
    "RenderSettings",
    "Settings",
    "ShareSettings",
    "get_settings",
    "validate_all_settings",
]
