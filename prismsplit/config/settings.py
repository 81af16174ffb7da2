"""
Configuration Management for PrismSplit

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Rounding tolerances live here, not in the algorithms.
Regional rounding rules can then be adjusted through the environment
without touching the allocator.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Split and ledger arithmetic configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PRISMSPLIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    amount_tolerance_minor: int = Field(
        default=1,
        ge=0,
        description="Minor units a custom split may be off by before it is rejected"
    )
    percentage_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        ge=0,
        description="Percentage points a proportional split may be off by"
    )
    default_currency: str = Field(
        default="USD",
        description="Currency assumed for groups the caller does not describe"
    )

    @field_validator('default_currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Currency codes are three uppercase letters."""
        v = v.strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError(f"Invalid ISO currency code: {v}")
        return v


class FocusSettings(BaseSettings):
    """Thresholds for the debt / lender / zen classification."""

    model_config = SettingsConfigDict(
        env_prefix="PRISMSPLIT_FOCUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    ratio: Decimal = Field(
        default=Decimal("1.1"),
        ge=1,
        description="How much larger one side must be than the other"
    )
    threshold: Decimal = Field(
        default=Decimal("20"),
        ge=0,
        description="Minimum amount (major units) before leaving zen"
    )


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PRISMSPLIT_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    json_output: bool = Field(
        default=True,
        description="Render JSON lines (False renders console output)"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return v


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
    def engine(self) -> EngineSettings:
        return EngineSettings()

    @property
    def focus(self) -> FocusSettings:
        return FocusSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()
