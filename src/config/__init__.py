"""Configuration package."""

from src.config.settings import (
    BotSettings,
    Settings,
    SureApiSettings,
    describe_settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "BotSettings",
    "Settings",
    "SureApiSettings",
    "describe_settings",
    "get_settings",
    "validate_all_settings",
]
