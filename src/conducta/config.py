"""
Application Configuration

Uses Pydantic Settings for type-safe environment variable management.
"""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    # ========================================================================
    # APPLICATION
    # ========================================================================

    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    DEBUG: bool = False

    # ========================================================================
    # INCIDENT RULES
    # ========================================================================

    MIN_ACADEMIC_YEAR: int = Field(default=2020, description="Oldest academic year accepted")

    TIMEZONE: str = Field(
        default="America/Lima",
        description="IANA zone used for 'today' checks and for rendering instants",
    )

    GRAVE_REQUIRES_PARENT_NOTIFICATION: bool = Field(
        default=False,
        description="Require parentsNotified before resolving or closing a GRAVE incident",
    )

    @field_validator("TIMEZONE")
    @classmethod
    def validate_timezone(cls: type[Settings], v: str) -> str:  # noqa: ARG003
        """Reject unknown IANA zone names at startup."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown TIMEZONE: {v!r}") from e
        return v

    # ========================================================================
    # COMPUTED PROPERTIES
    # ========================================================================

    @property
    def zone(self) -> tzinfo:
        """Institution timezone."""
        return ZoneInfo(self.TIMEZONE)

    def today(self) -> date:
        """Current calendar date in the institution timezone."""
        return datetime.now(self.zone).date()

    def now(self) -> datetime:
        """Current instant in the institution timezone."""
        return datetime.now(self.zone)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == "production"

    @property
    def is_local(self) -> bool:
        """Check if running locally."""
        return self.ENVIRONMENT == "local"


# Global settings instance
settings = Settings()
