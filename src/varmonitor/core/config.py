"""Configuration management.

Uses pydantic-settings for type-safe configuration from environment variables.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    All settings can be overridden via environment variables.
    Prefix: VARMONITOR_
    """

    model_config = SettingsConfigDict(
        env_prefix="VARMONITOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Distribution view
    default_skew_threshold: float = Field(
        default=3.0,
        description="Threshold used when a malformed or negative skew threshold is supplied",
    )
    min_distinct_for_log: int = Field(
        default=50,
        description="Columns with this many distinct values or fewer are never log-scaled",
    )
    sample_size: int | None = Field(
        default=50_000,
        description="Row bound for the boxplot sample (None = use all rows)",
    )
    sample_seed: int | None = Field(
        default=None,
        description="Seed for the boxplot sample; None draws from fresh entropy",
    )

    # Multi-variable runs
    max_workers: int = Field(
        default=4,
        description="Thread pool size when summarizing several variables",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")  # 'json' or 'console'


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
