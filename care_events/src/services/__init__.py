"""
Service layer for business logic.

This module exports the service classes used by the API endpoints.
"""

from care_events.src.services.event_service import (
    EventLifecycleService,
    EventPage,
    ExpansionReport,
)
from care_events.src.services.event_store import EventFilter, EventStore
from care_events.src.services.event_validator import EventValidator
from care_events.src.services.institution_directory import InstitutionDirectory
from care_events.src.services.recurrence import OccurrenceDraft, RecurrenceExpander
from care_events.src.services.exceptions import (
    ServiceError,
    NotFoundError,
    ValidationError,
    RecurrenceExpansionError,
)

__all__ = [
    "EventLifecycleService",
    "EventPage",
    "ExpansionReport",
    "EventFilter",
    "EventStore",
    "EventValidator",
    "InstitutionDirectory",
    "OccurrenceDraft",
    "RecurrenceExpander",
    "ServiceError",
    "NotFoundError",
    "ValidationError",
    "RecurrenceExpansionError",
]
