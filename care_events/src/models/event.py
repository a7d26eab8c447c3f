"""
Event model for institutional events.

Events are time-bounded activities owned by an institution: care routines,
family visits, entertainment and social activities. A recurring care event
is materialized as independent Event rows, one per occurrence.

Design Rationale:
- status is a cached projection of wall-clock time, re-derived on read
- Cancelled is the only status ever set manually and it is never recalculated
- care_configuration is present exactly when type is Care
- room_ids is an ordered JSON list; an empty list means every room
- Hard delete only (no deleted_at column)
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Column, Integer, String, DateTime, JSON, ForeignKey, Index
)
from sqlalchemy.orm import relationship

from care_events.src.models import Base
from care_events.src.models.mixins import GuidMixin


class EventType(str, enum.Enum):
    """Event category. CARE is the only category carrying care configuration."""
    CARE = "Care"
    ENTERTAINMENT = "Entertainment"
    SOCIAL = "Social"
    VISIT = "Visit"
    OTHER = "Other"


class EventStatus(str, enum.Enum):
    """Event lifecycle status."""
    UPCOMING = "Upcoming"
    ONGOING = "Ongoing"
    ENDED = "Ended"
    CANCELLED = "Cancelled"


class CareSubType(str, enum.Enum):
    """Kind of care routine."""
    VITAL_CHECK = "VitalCheck"
    THERAPY = "Therapy"
    MEDICATION = "Medication"
    HYGIENE = "Hygiene"
    OTHER = "Other"


class EventFrequency(str, enum.Enum):
    """Repeat cadence of a care routine."""
    ONE_TIME = "OneTime"
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"


class Event(Base, GuidMixin):
    """
    Institutional event model.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid: UUIDv7 for external identification (inherited from GuidMixin)
        guid: GUID string property (evt_xxx, inherited from GuidMixin)
        institution_id: FK to owning Institution (immutable)
        name: Display label
        type: EventType value
        status: EventStatus value
        start_time: Start timestamp (naive UTC)
        end_time: End timestamp (naive UTC), always after start_time
        location: Free text, defaults to the institution name
        room_ids: Ordered list of room references (empty = all rooms)
        care_configuration: {"subType": ..., "frequency": ...} for Care events
        created_at: Creation timestamp
        updated_at: Last update timestamp

    Indexes:
        - uuid (unique, for GUID lookups)
        - institution_id, start_time (for listing)
        - institution_id, status (for status filters)
    """

    __tablename__ = "events"

    GUID_PREFIX = "evt"

    id = Column(Integer, primary_key=True, autoincrement=True)

    institution_id = Column(
        Integer,
        ForeignKey("institutions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False)
    status = Column(String(50), default=EventStatus.UPCOMING.value, nullable=False)

    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)

    location = Column(String(500), nullable=False, default="")
    room_ids = Column(JSON, nullable=False, default=list)
    care_configuration = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    institution = relationship("Institution", back_populates="events")

    __table_args__ = (
        Index("idx_events_institution_start", "institution_id", "start_time"),
        Index("idx_events_institution_status", "institution_id", "status"),
    )

    @property
    def institution_guid(self) -> Optional[str]:
        """GUID of the owning institution."""
        return self.institution.guid if self.institution else None

    @property
    def frequency(self) -> Optional[str]:
        """Recurrence frequency from the care configuration, if any."""
        if not self.care_configuration:
            return None
        return self.care_configuration.get("frequency")

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Event("
            f"id={self.id}, "
            f"name='{self.name}', "
            f"start={self.start_time}, "
            f"status={self.status}"
            f")>"
        )

    def __str__(self) -> str:
        return f"{self.name} - {self.start_time:%Y-%m-%d %H:%M}"
