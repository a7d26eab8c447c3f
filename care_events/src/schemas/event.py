"""
Pydantic schemas for event request/response validation.

Provides data validation and serialization for:
- Event creation requests
- Event update (patch) requests
- Listing parameters
- Event API responses (single and paginated)

Design:
- Schemas check shape and enum membership only. Cross-field rules (end after
  start, care configuration matching the type, status transitions) belong to
  EventValidator so they apply equally to API and in-process callers.
- Timestamps are normalized to naive UTC on the way in.
- GUIDs are exposed, never internal IDs.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from care_events.src.models.event import (
    CareSubType,
    EventFrequency,
    EventStatus,
    EventType,
)
from care_events.src.utils.clock import to_naive_utc


# ============================================================================
# Shared Schemas
# ============================================================================


class CareConfiguration(BaseModel):
    """
    Care routine metadata, attached only to Care events.

    Fields use the camelCase keys stored in the JSON column.
    """

    subType: CareSubType = Field(..., description="Kind of care routine")
    frequency: Optional[EventFrequency] = Field(
        default=None,
        description="Repeat cadence; omitted means OneTime"
    )

    def to_storage(self) -> Dict[str, Any]:
        """JSON-ready dict for the care_configuration column."""
        data = {"subType": self.subType.value}
        if self.frequency is not None:
            data["frequency"] = self.frequency.value
        return data


def _normalize_timestamp(v: Optional[datetime]) -> Optional[datetime]:
    return to_naive_utc(v)


def _clean_room_ids(v: Optional[List[str]]) -> Optional[List[str]]:
    if v is None:
        return v
    cleaned = []
    for room_id in v:
        room_id = room_id.strip()
        if room_id and room_id not in cleaned:
            cleaned.append(room_id)
    return cleaned


# ============================================================================
# Request Schemas
# ============================================================================


class EventCreate(BaseModel):
    """
    Schema for creating an event.

    Required:
        name: Display label
        type: Event category
        start_time: Start timestamp
        end_time: End timestamp

    Optional:
        location: Free text (defaults to the institution name)
        room_ids: Rooms the event applies to (empty = all rooms)
        care_configuration: Required for Care events, forbidden otherwise
    """

    name: str = Field(..., min_length=1, max_length=255)
    type: EventType
    start_time: datetime
    end_time: datetime
    location: Optional[str] = Field(default=None, max_length=500)
    room_ids: List[str] = Field(default_factory=list)
    care_configuration: Optional[CareConfiguration] = Field(default=None)

    @field_validator("name")
    @classmethod
    def validate_name_not_whitespace(cls, v: str) -> str:
        """Ensure name is not just whitespace."""
        if not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip()

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_timestamps(cls, v: datetime) -> datetime:
        return _normalize_timestamp(v)

    @field_validator("room_ids")
    @classmethod
    def clean_room_ids(cls, v: List[str]) -> List[str]:
        """Strip blanks and drop duplicates, keeping the first position."""
        return _clean_room_ids(v)

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Morning vital check",
                "type": "Care",
                "start_time": "2026-11-02T08:00:00Z",
                "end_time": "2026-11-02T08:30:00Z",
                "room_ids": ["room-101", "room-102"],
                "care_configuration": {"subType": "VitalCheck", "frequency": "Daily"},
            }
        }
    }


class EventUpdate(BaseModel):
    """
    Schema for patching an existing event.

    All fields are optional - only provided fields are applied. Passing
    ``care_configuration: null`` explicitly requests its removal, which is
    only valid when the event is not a Care event.

    status may only be set to Cancelled; all other statuses are derived.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    type: Optional[EventType] = Field(default=None)
    start_time: Optional[datetime] = Field(default=None)
    end_time: Optional[datetime] = Field(default=None)
    location: Optional[str] = Field(default=None, max_length=500)
    room_ids: Optional[List[str]] = Field(default=None)
    care_configuration: Optional[CareConfiguration] = Field(default=None)
    status: Optional[EventStatus] = Field(default=None)

    @field_validator("name")
    @classmethod
    def validate_name_not_whitespace(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip() if v else None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _normalize_timestamp(v)

    @field_validator("room_ids")
    @classmethod
    def clean_room_ids(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_room_ids(v)

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "Cancelled",
            }
        }
    }


class EventListParams(BaseModel):
    """
    Filters and pagination for event listings.

    Date bounds apply to start_time and are inclusive. search matches name
    or location, case-insensitively. take falls back to the configured
    page size when omitted.
    """

    take: Optional[int] = Field(default=None, ge=1)
    skip: int = Field(default=0, ge=0)
    type: Optional[EventType] = Field(default=None)
    status: Optional[EventStatus] = Field(default=None)
    start_date: Optional[datetime] = Field(default=None)
    end_date: Optional[datetime] = Field(default=None)
    search: Optional[str] = Field(default=None, max_length=255)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_bounds(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _normalize_timestamp(v)

    @field_validator("search")
    @classmethod
    def blank_search_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()


# ============================================================================
# Response Schemas
# ============================================================================


class InstitutionSummary(BaseModel):
    """Owning institution as embedded in event responses."""

    institution_id: str = Field(..., description="Institution GUID (ins_xxx)")
    name: str = Field(..., description="Institution name, the default event location")


class EventResponse(BaseModel):
    """Schema for event API responses."""

    event_id: str = Field(..., description="Event GUID (evt_xxx)")
    institution_id: str = Field(..., description="Institution GUID (ins_xxx)")
    institution: InstitutionSummary
    name: str
    type: EventType
    status: EventStatus
    start_time: datetime
    end_time: datetime
    location: str
    room_ids: List[str]
    care_configuration: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime

    model_config = {
        "json_schema_extra": {
            "example": {
                "event_id": "evt_01hgw2bbg0000000000000001",
                "institution_id": "ins_01hgw2bbg0000000000000001",
                "institution": {
                    "institution_id": "ins_01hgw2bbg0000000000000001",
                    "name": "Sunrise Care Home",
                },
                "name": "Morning vital check",
                "type": "Care",
                "status": "Upcoming",
                "start_time": "2026-11-02T08:00:00",
                "end_time": "2026-11-02T08:30:00",
                "location": "Sunrise Care Home",
                "room_ids": ["room-101"],
                "care_configuration": {"subType": "VitalCheck", "frequency": "Daily"},
                "created_at": "2026-10-19T09:00:00",
                "updated_at": "2026-10-19T09:00:00",
            }
        }
    }


class EventListResponse(BaseModel):
    """Paginated list of events."""

    items: List[EventResponse]
    total: int = Field(..., description="Matching events before pagination")
    take: int
    skip: int
