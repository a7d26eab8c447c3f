"""
SQLAlchemy models for the care events service.

This module provides the declarative base class and imports all models
to ensure they are registered with SQLAlchemy's metadata.
"""

from sqlalchemy.orm import declarative_base

# Create the declarative base class
# All models will inherit from this Base class
Base = declarative_base()


# Import all models here so they are registered with Base.metadata
# This is required for Alembic autogenerate to detect models
from care_events.src.models.institution import Institution
from care_events.src.models.event import (
    Event,
    EventType,
    EventStatus,
    CareSubType,
    EventFrequency,
)

# Export Base and all models
__all__ = [
    "Base",
    "Institution",
    "Event",
    "EventType",
    "EventStatus",
    "CareSubType",
    "EventFrequency",
]
