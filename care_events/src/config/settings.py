"""
Application settings configuration for the care events service.

Centralized settings loaded from environment variables.
"""

from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment Variables:
        CARE_EVENTS_DB_URL: SQLAlchemy database URL
            (default: "sqlite:///./care_events.db")
        RECURRENCE_HORIZON_MONTHS: How far ahead recurring care events are
            materialized, in calendar months (default: 3)
        RECURRENCE_MAX_OCCURRENCES: Hard cap on occurrences generated for a
            single recurring event (default: 100)
        EVENTS_DEFAULT_PAGE_SIZE: Default page size for institution listings (default: 10)
        EVENTS_ROOM_PAGE_SIZE: Default page size for room listings (default: 100)
        EVENTS_MAX_PAGE_SIZE: Largest accepted page size (default: 1000)
    """

    database_url: str = Field(
        default="sqlite:///./care_events.db",
        validation_alias="CARE_EVENTS_DB_URL",
        description="SQLAlchemy database URL"
    )

    # Recurrence expansion bounds
    recurrence_horizon_months: int = Field(
        default=3,
        validation_alias="RECURRENCE_HORIZON_MONTHS",
        ge=1,
        le=24,
    )

    recurrence_max_occurrences: int = Field(
        default=100,
        validation_alias="RECURRENCE_MAX_OCCURRENCES",
        ge=1,
        le=1000,
    )

    # Pagination
    events_default_page_size: int = Field(
        default=10,
        validation_alias="EVENTS_DEFAULT_PAGE_SIZE",
        ge=1,
    )

    events_room_page_size: int = Field(
        default=100,
        validation_alias="EVENTS_ROOM_PAGE_SIZE",
        ge=1,
    )

    events_max_page_size: int = Field(
        default=1000,
        validation_alias="EVENTS_MAX_PAGE_SIZE",
        ge=1,
    )

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Reject an empty database URL."""
        if not v.strip():
            raise ValueError("CARE_EVENTS_DB_URL cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_page_sizes(self) -> "AppSettings":
        """Default page sizes must fit under the maximum page size."""
        if self.events_default_page_size > self.events_max_page_size:
            raise ValueError("EVENTS_DEFAULT_PAGE_SIZE cannot exceed EVENTS_MAX_PAGE_SIZE")
        if self.events_room_page_size > self.events_max_page_size:
            raise ValueError("EVENTS_ROOM_PAGE_SIZE cannot exceed EVENTS_MAX_PAGE_SIZE")
        return self

    @property
    def is_sqlite(self) -> bool:
        """Check if the configured database is SQLite."""
        return self.database_url.startswith("sqlite")


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get cached application settings instance.

    Returns:
        AppSettings: Configured application settings from environment
    """
    return AppSettings()
