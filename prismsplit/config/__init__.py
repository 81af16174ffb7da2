"""Configuration package."""

from prismsplit.config.settings import (
    EngineSettings,
    FocusSettings,
    LoggingSettings,
    Settings,
    get_settings,
)

__all__ = [
    "EngineSettings",
    "FocusSettings",
    "LoggingSettings",
    "Settings",
    "get_settings",
]
