"""
Configuration management for the Answer Checker system.

Uses Pydantic Settings for type-safe configuration loading from environment variables.
All configuration is validated at startup to fail fast on misconfiguration.
"""

import logging
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Variables use the ``ANSWER_CHECKER_`` prefix, e.g.
    ``ANSWER_CHECKER_DEFAULT_MARKS=4``.
    """

    model_config = SettingsConfigDict(
        env_prefix="ANSWER_CHECKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Answer Key Defaults
    # ==========================================================================
    default_marks: Decimal = Field(
        default=Decimal("3"),
        ge=0,
        description="Marks used when an extracted question omits them",
    )

    default_negative_marks: Decimal = Field(
        default=Decimal("1"),
        ge=0,
        description="Negative marks used for MCQ/MSQ questions that omit them",
    )

    # ==========================================================================
    # Output Configuration
    # ==========================================================================
    log_level: str = Field(
        default="WARNING",
        description="Logging level for the CLI",
    )

    report_directory: Path = Field(
        default=Path("./reports"),
        description="Directory for grade-sheet reports",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure the level is one the logging module knows."""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    """
    return Settings()
