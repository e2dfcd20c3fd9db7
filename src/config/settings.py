"""
Configuration Management for the Sure chat bot

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

import re
from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Log level names accepted from the environment, mapped onto stdlib names
LOG_LEVEL_ALIASES = {
    "trace": "debug",
    "debug": "debug",
    "info": "info",
    "warn": "warning",
    "warning": "warning",
    "error": "error",
    "fatal": "critical",
    "critical": "critical",
}


class SureApiSettings(BaseSettings):
    """Sure finance service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SURE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        ...,
        min_length=1,
        description="Base URL of the Sure instance (e.g. https://app.sure.am)"
    )
    api_key: str = Field(
        ...,
        min_length=1,
        description="Sure API key, sent as X-Api-Key"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Timeout for every HTTP request"
    )
    max_read_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for idempotent reads before giving up"
    )

    @field_validator("base_url", "api_key")
    @classmethod
    def strip_required(cls, v: str) -> str:
        """Reject values that are only whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def masked_api_key(self) -> str:
        """API key reduced to its last 4 characters, for logging."""
        return f"***{self.api_key[-4:]}"


class BotSettings(BaseSettings):
    """
    Conversation, session and rate-limit configuration.

    LOG_LEVEL and ALLOWED_PHONE_NUMBERS are read without the BOT_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="BOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    allowed_phone_numbers: str = Field(
        default="",
        validation_alias=AliasChoices("ALLOWED_PHONE_NUMBERS", "BOT_ALLOWED_PHONE_NUMBERS"),
        description="Comma-separated list of phone numbers allowed to use the bot"
    )
    log_level: str = Field(
        default="info",
        validation_alias=AliasChoices("LOG_LEVEL", "BOT_LOG_LEVEL"),
        description="Log level (debug, info, warning, error, critical)"
    )

    # Session lifecycle
    session_timeout_minutes: float = Field(
        default=30.0,
        gt=0,
        description="Inactivity after which a conversation is discarded"
    )

    # Abuse protection
    rate_limit_max_attempts: int = Field(
        default=30,
        ge=1,
        description="Messages allowed per identity within the window"
    )
    rate_limit_window_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Length of the rate-limit sliding window"
    )

    # Conversation
    recent_transactions_limit: int = Field(
        default=5,
        ge=1,
        le=100,
        description="How many transactions /recent shows"
    )
    reference_data_retry_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Minimum delay between attempts to reload accounts/categories"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().lower()
        if level not in LOG_LEVEL_ALIASES:
            raise ValueError(
                f"LOG_LEVEL must be one of: {', '.join(LOG_LEVEL_ALIASES)}. Got: {v}"
            )
        return LOG_LEVEL_ALIASES[level]

    @field_validator("allowed_phone_numbers")
    @classmethod
    def validate_phone_numbers(cls, v: str) -> str:
        """Every listed entry must contain at least one digit."""
        for entry in v.split(","):
            entry = entry.strip()
            if entry and not re.sub(r"[^0-9]", "", entry):
                raise ValueError(f"Invalid phone number format: {entry}")
        return v

    @property
    def allowed_numbers_list(self) -> list[str]:
        """Allowed phone numbers reduced to digits. Empty means nobody is allowed."""
        numbers = []
        for entry in self.allowed_phone_numbers.split(","):
            cleaned = re.sub(r"[^0-9]", "", entry)
            if cleaned:
                numbers.append(cleaned)
        return numbers

    @property
    def session_timeout_seconds(self) -> float:
        return self.session_timeout_minutes * 60


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

    # Sections are loaded lazily so a missing Sure key does not
    # prevent the bot section from loading

    @property
    def sure(self) -> SureApiSettings:
        return SureApiSettings()

    @property
    def bot(self) -> BotSettings:
        return BotSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings are properly configured.

    Returns a dict of {section_name: is_valid} plus
    {section_name_error: message} for failing sections.
    Useful for startup checks.
    """
    results: dict[str, object] = {}

    settings = get_settings()

    try:
        _ = settings.sure
        results["sure"] = True
    except Exception as e:
        results["sure"] = False
        results["sure_error"] = str(e)

    try:
        _ = settings.bot
        results["bot"] = True
    except Exception as e:
        results["bot"] = False
        results["bot_error"] = str(e)

    return results


def describe_settings(sure: SureApiSettings, bot: BotSettings) -> dict[str, object]:
    """Loggable view of the configuration with secrets masked."""
    return {
        "sure_base_url": sure.base_url,
        "sure_api_key": sure.masked_api_key,
        "allowed_phone_numbers": bot.allowed_numbers_list,
        "log_level": bot.log_level,
        "session_timeout_minutes": bot.session_timeout_minutes,
        "rate_limit": f"{bot.rate_limit_max_attempts}/{bot.rate_limit_window_seconds:g}s",
    }
