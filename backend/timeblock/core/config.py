"""
Engine configuration using Pydantic Settings.

Defaults for workday hours and the tuning knobs of the placement search are
read from environment variables (or a local .env file).
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Logging
    # ===========================================
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ===========================================
    # Default workday (used when a request leaves hours unset)
    # ===========================================
    DEFAULT_WORKDAY_START_HOUR: int = Field(9, ge=0, le=23)
    DEFAULT_WORKDAY_START_MINUTE: int = Field(0, ge=0, le=59)
    DEFAULT_WORKDAY_END_HOUR: int = Field(17, ge=0, le=23)
    DEFAULT_LUNCH_START_HOUR: int = Field(12, ge=0, le=23)
    DEFAULT_LUNCH_END_HOUR: int = Field(13, ge=0, le=23)

    # ===========================================
    # Placement search
    # ===========================================
    # Upper bound on gap-scan iterations per candidate day
    MAX_SLOT_SCAN_ATTEMPTS: int = Field(200, ge=1)

    # Share of the active-day count a task may drift away from its target
    TIMELINE_DEVIATION_RATIO: float = Field(0.3, ge=0.0, le=1.0)

    # Affinity bias applied when ranking weekend vs weekday candidates
    WEEKEND_PREFERENCE_WEIGHT: float = Field(0.25, ge=0.0)
    WEEKDAY_PREFERENCE_WEIGHT: float = Field(0.1, ge=0.0)

    # ===========================================
    # Dependency graph
    # ===========================================
    MAX_CYCLE_RESOLUTION_ROUNDS: int = Field(50, ge=0)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
