"""
Pydantic schemas for API request/response validation.
"""

from care_events.src.schemas.event import (
    CareConfiguration,
    EventCreate,
    EventUpdate,
    EventListParams,
    EventListResponse,
    EventResponse,
    InstitutionSummary,
)

__all__ = [
    "CareConfiguration",
    "EventCreate",
    "EventUpdate",
    "EventListParams",
    "EventResponse",
    "EventListResponse",
    "InstitutionSummary",
]
