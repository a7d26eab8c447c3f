"""
Institution reference model.

Institutions are the tenancy boundary for events. Master data (address,
rooms, staff) is owned elsewhere; this table only carries what the event
engine needs: a stable identifier and the display name used as the default
event location.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from care_events.src.models import Base
from care_events.src.models.mixins import GuidMixin


class Institution(Base, GuidMixin):
    """
    Institution owning a set of events.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid: UUIDv7 for external identification (inherited from GuidMixin)
        guid: GUID string property (ins_xxx, inherited from GuidMixin)
        name: Display name, also the default event location
        created_at: Creation timestamp
        updated_at: Last update timestamp

    Relationships:
        events: Events owned by this institution (one-to-many, CASCADE on delete)
    """

    __tablename__ = "institutions"

    GUID_PREFIX = "ins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    events = relationship(
        "Event",
        back_populates="institution",
        lazy="dynamic",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Institution(id={self.id}, name='{self.name}')>"
