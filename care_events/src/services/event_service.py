"""
Event lifecycle service.

Provides business logic for creating, updating, deleting, retrieving and
listing institutional events.

Design:
- Status is re-derived from the clock whenever events are read; stale
  values are written back (only when they changed, so repeated reads are
  write-free)
- Cancelled is sticky; only Upcoming events may be cancelled
- Creating a recurring Care event fans out into stored occurrences. The
  root event is committed first and each occurrence is its own unit of
  work, so any failure during fan-out leaves the root and the earlier
  occurrences in place
- Listings reconcile and sort the full candidate set before paginating:
  active events (Upcoming, Ongoing) first by start ascending, then the rest
  by start descending
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from care_events.src.config.settings import AppSettings, get_settings
from care_events.src.models import Event, EventStatus
from care_events.src.schemas.event import (
    CareConfiguration,
    EventCreate,
    EventListParams,
    EventUpdate,
)
from care_events.src.services.event_status import (
    calculate_status,
    reconcile_status,
    sort_by_lifecycle,
)
from care_events.src.services.event_store import EventFilter, EventStore
from care_events.src.services.event_validator import EventValidator
from care_events.src.services.exceptions import RecurrenceExpansionError, ValidationError
from care_events.src.services.institution_directory import InstitutionDirectory
from care_events.src.services.recurrence import RecurrenceExpander
from care_events.src.utils.clock import utc_now
from care_events.src.utils.logging_config import get_logger, log_fields


logger = get_logger("services")

SchemaT = TypeVar("SchemaT", bound=BaseModel)


@dataclass
class EventPage:
    """One page of a listing plus the size of the whole filtered set."""

    items: List[Event]
    total: int
    take: int
    skip: int


@dataclass
class ExpansionReport:
    """Outcome of storing the occurrences of a recurring event."""

    requested: int
    created: List[Event] = field(default_factory=list)
    error: Optional[RecurrenceExpansionError] = None

    @property
    def complete(self) -> bool:
        return self.error is None and len(self.created) == self.requested


def _coerce(schema: Type[SchemaT], data: Union[SchemaT, Mapping[str, Any], None]) -> SchemaT:
    """Accept a schema instance or a plain mapping, reporting problems as ValidationError."""
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data or {})
    except PydanticValidationError as e:
        first = e.errors()[0]
        field_name = ".".join(str(part) for part in first["loc"]) or None
        raise ValidationError(f"{field_name}: {first['msg']}", field=field_name)


def _plain(value: Any) -> Any:
    """Convert enums and nested schemas to their stored representation."""
    if isinstance(value, CareConfiguration):
        return value.to_storage()
    if hasattr(value, "value"):
        return value.value
    return value


class EventLifecycleService:
    """
    Service for managing institutional events.

    Handles:
    - Create with default location and recurrence fan-out
    - Field patches with status rules
    - Hard delete
    - Read-time status reconciliation
    - Lifecycle-ordered and room-scoped listings

    Usage:
        >>> service = EventLifecycleService(db_session)
        >>> event = service.create_event(institution_guid, {
        ...     "name": "Physiotherapy",
        ...     "type": "Care",
        ...     "start_time": start,
        ...     "end_time": end,
        ...     "care_configuration": {"subType": "Therapy", "frequency": "Weekly"},
        ... })
        >>> page = service.list_events(institution_guid, {"take": 20})
    """

    def __init__(
        self,
        db: Session,
        store: Optional[EventStore] = None,
        institutions: Optional[InstitutionDirectory] = None,
        expander: Optional[RecurrenceExpander] = None,
        validator: Optional[EventValidator] = None,
        settings: Optional[AppSettings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize event lifecycle service.

        Args:
            db: SQLAlchemy database session
            store: Event repository (defaults to an EventStore on ``db``)
            institutions: Institution lookup (defaults to a directory on ``db``)
            expander: Recurrence expander (defaults to configured bounds)
            validator: Event validator
            settings: Application settings (defaults to get_settings())
            clock: Source of the current time as naive UTC
        """
        self.db = db
        self.settings = settings or get_settings()
        self.store = store or EventStore(db)
        self.institutions = institutions or InstitutionDirectory(db)
        self.expander = expander or RecurrenceExpander(
            horizon_months=self.settings.recurrence_horizon_months,
            max_occurrences=self.settings.recurrence_max_occurrences,
        )
        self.validator = validator or EventValidator()
        self.clock = clock

    # =========================================================================
    # Create Operations
    # =========================================================================

    def create_event(
        self,
        institution_guid: str,
        data: Union[EventCreate, Mapping[str, Any]],
    ) -> Event:
        """
        Create an event, and its occurrences when it is a recurring Care event.

        Args:
            institution_guid: Owning institution GUID (ins_xxx)
            data: EventCreate or equivalent mapping

        Returns:
            The created root event

        Raises:
            NotFoundError: If the institution does not exist
            ValidationError: If the event breaks a structural rule
        """
        data = _coerce(EventCreate, data)
        institution = self.institutions.get_by_guid(institution_guid)

        location = data.location or institution.name
        care_configuration = (
            data.care_configuration.to_storage() if data.care_configuration else None
        )

        self.validator.validate_create(
            data.type, data.start_time, data.end_time, care_configuration
        )

        now = self.clock()
        if data.start_time > now:
            initial_status = EventStatus.UPCOMING
        else:
            initial_status = calculate_status(
                now, data.start_time, data.end_time, EventStatus.UPCOMING
            )

        event = self.store.create(
            institution.id,
            name=data.name,
            type=data.type.value,
            status=initial_status.value,
            start_time=data.start_time,
            end_time=data.end_time,
            location=location,
            room_ids=list(data.room_ids),
            care_configuration=care_configuration,
        )
        logger.info(
            f"Created event: {event.guid} - {event.name} ({event.status})",
            extra=log_fields(event_guid=event.guid, institution_guid=institution_guid),
        )

        if care_configuration and self.expander.is_recurring(care_configuration.get("frequency")):
            self.materialize_occurrences(event, generated_at=now)

        return event

    @staticmethod
    def _expansion_failed(
        report: ExpansionReport, root_guid: str, cause: Exception
    ) -> ExpansionReport:
        """Record the failure that stopped a fan-out and log it."""
        report.error = RecurrenceExpansionError(
            root_guid=root_guid,
            created=len(report.created),
            requested=report.requested,
            cause=cause,
        )
        logger.error(
            report.error.message,
            exc_info=True,
            extra=log_fields(event_guid=root_guid, created=len(report.created)),
        )
        return report

    def materialize_occurrences(
        self,
        root: Event,
        generated_at: Optional[datetime] = None,
    ) -> ExpansionReport:
        """
        Store the occurrences that follow a recurring event.

        Occurrences are written one at a time. The first failure, whether
        from the expander or from a write, stops the fan-out; the root event
        and every occurrence already written are kept, and the failure is
        logged and returned in the report.

        Args:
            root: Stored recurring event
            generated_at: Time the horizon is measured from (defaults to now)

        Returns:
            ExpansionReport with the stored occurrences
        """
        generated_at = generated_at or self.clock()
        root_guid = root.guid
        frequency = root.frequency
        institution_id = root.institution_id

        try:
            drafts = self.expander.expand(root, frequency, generated_at)
        except Exception as e:
            return self._expansion_failed(ExpansionReport(requested=0), root_guid, e)

        report = ExpansionReport(requested=len(drafts))

        for draft in drafts:
            try:
                occurrence = self.store.create(
                    institution_id,
                    name=draft.name,
                    type=draft.type,
                    status=draft.status,
                    start_time=draft.start_time,
                    end_time=draft.end_time,
                    location=draft.location,
                    room_ids=draft.room_ids,
                    care_configuration=draft.care_configuration,
                )
            except Exception as e:
                return self._expansion_failed(report, root_guid, e)
            report.created.append(occurrence)

        logger.info(
            f"Expanded {frequency} event {root_guid}: "
            f"{len(report.created)} occurrences stored",
            extra=log_fields(event_guid=root_guid, created=len(report.created)),
        )
        return report

    # =========================================================================
    # Read Operations
    # =========================================================================

    def _load(self, event_guid: str, institution_guid: Optional[str] = None) -> Event:
        institution_id = None
        if institution_guid is not None:
            institution_id = self.institutions.get_by_guid(institution_guid).id
        return self.store.get_by_guid(event_guid, institution_id=institution_id)

    def get_event_by_id(
        self,
        event_guid: str,
        institution_guid: Optional[str] = None,
    ) -> Event:
        """
        Get an event with its status reconciled against the clock.

        A stale, non-cancelled status is written back before returning.

        Args:
            event_guid: Event GUID (evt_xxx)
            institution_guid: If provided, the event must belong to this institution

        Raises:
            NotFoundError: If the event (or institution) does not exist
        """
        event = self._load(event_guid, institution_guid)

        result = reconcile_status(self.clock(), event.start_time, event.end_time, event.status)
        if result.changed:
            previous = event.status
            event = self.store.update_status(event, result.status.value)
            logger.debug(
                f"Reconciled event {event.guid}: {previous} -> {event.status}",
                extra=log_fields(event_guid=event.guid, previous_status=previous),
            )

        return event

    def _reconcile_all(self, events: List[Event], now: datetime) -> int:
        """Write back every stale status in one commit. Returns the number written."""
        corrections = []
        for event in events:
            result = reconcile_status(now, event.start_time, event.end_time, event.status)
            if result.changed:
                corrections.append((event, result.status.value))
        return self.store.update_statuses(corrections)

    def _page_bounds(self, params: EventListParams, default_take: int) -> tuple:
        take = params.take if params.take is not None else default_take
        if take > self.settings.events_max_page_size:
            raise ValidationError(
                f"take cannot exceed {self.settings.events_max_page_size}",
                field="take",
            )
        return take, params.skip

    def _reconciled_candidates(self, criteria: EventFilter) -> List[Event]:
        now = self.clock()
        candidates = self.store.find_many(criteria)
        written = self._reconcile_all(candidates, now)
        if written:
            logger.info(
                f"Reconciled status of {written} events",
                extra=log_fields(institution_id=criteria.institution_id, reconciled=written),
            )
            # Reload the set in one query; the commit expired every loaded row
            candidates = self.store.find_many(criteria)
        return candidates

    def _criteria(
        self,
        institution_id: int,
        params: EventListParams,
        room_id: Optional[str] = None,
    ) -> EventFilter:
        # Status is filtered after reconciliation so stale rows still match
        return EventFilter(
            institution_id=institution_id,
            type=params.type.value if params.type else None,
            start_date=params.start_date,
            end_date=params.end_date,
            search=params.search,
            room_id=room_id,
        )

    def list_events(
        self,
        institution_guid: str,
        params: Union[EventListParams, Mapping[str, Any], None] = None,
    ) -> EventPage:
        """
        List an institution's events in lifecycle order.

        The whole filtered set is reconciled and sorted before the page is
        cut, so page boundaries are stable regardless of stale statuses.

        Args:
            institution_guid: Owning institution GUID (ins_xxx)
            params: Filters and pagination (type, status, start_date,
                end_date, search, take, skip)

        Returns:
            EventPage with the requested slice and the filtered total

        Raises:
            NotFoundError: If the institution does not exist
            ValidationError: If pagination is out of range
        """
        params = _coerce(EventListParams, params)
        take, skip = self._page_bounds(params, self.settings.events_default_page_size)
        institution = self.institutions.get_by_guid(institution_guid)

        events = self._reconciled_candidates(self._criteria(institution.id, params))
        if params.status:
            events = [e for e in events if e.status == params.status.value]

        ordered = sort_by_lifecycle(
            events,
            status_of=lambda e: e.status,
            start_of=lambda e: e.start_time,
        )

        return EventPage(items=ordered[skip:skip + take], total=len(ordered), take=take, skip=skip)

    def list_events_by_room(
        self,
        institution_guid: str,
        room_id: str,
        params: Union[EventListParams, Mapping[str, Any], None] = None,
    ) -> EventPage:
        """
        List the events that apply to a room, ordered by start ascending.

        Institution-wide events (no rooms) are included for every room.

        Raises:
            NotFoundError: If the institution does not exist
            ValidationError: If room_id is blank or pagination is out of range
        """
        if not room_id or not room_id.strip():
            raise ValidationError("Room ID is required", field="room_id")

        params = _coerce(EventListParams, params)
        take, skip = self._page_bounds(params, self.settings.events_room_page_size)
        institution = self.institutions.get_by_guid(institution_guid)

        events = self._reconciled_candidates(
            self._criteria(institution.id, params, room_id=room_id.strip())
        )
        if params.status:
            events = [e for e in events if e.status == params.status.value]

        return EventPage(items=events[skip:skip + take], total=len(events), take=take, skip=skip)

    # =========================================================================
    # Update Operations
    # =========================================================================

    @staticmethod
    def _changes(data: Union[EventUpdate, Mapping[str, Any]]) -> Dict[str, Any]:
        """Fields explicitly present in the patch, in stored form."""
        patch = _coerce(EventUpdate, data)
        return {name: _plain(getattr(patch, name)) for name in patch.model_fields_set}

    def update_event(
        self,
        event_guid: str,
        data: Union[EventUpdate, Mapping[str, Any]],
        institution_guid: Optional[str] = None,
    ) -> Event:
        """
        Patch an event.

        Args:
            event_guid: Event GUID (evt_xxx)
            data: EventUpdate or equivalent mapping; only present keys apply
            institution_guid: If provided, the event must belong to this institution

        Returns:
            Updated Event instance

        Raises:
            NotFoundError: If the event does not exist
            ValidationError: If the merged event breaks a rule, or the status
                change is not a cancellation of an Upcoming event
        """
        changes = self._changes(data)
        event = self._load(event_guid, institution_guid)

        now = self.clock()
        current_status = calculate_status(now, event.start_time, event.end_time, event.status)
        self.validator.validate_update(event, changes, current_status)

        values = {
            name: changes[name]
            for name in ("name", "type", "start_time", "end_time", "location", "room_ids")
            if changes.get(name) is not None
        }
        values["care_configuration"] = self.validator.resolve_care_configuration(event, changes)

        if changes.get("status") == EventStatus.CANCELLED.value:
            values["status"] = EventStatus.CANCELLED.value
        else:
            values["status"] = calculate_status(
                now,
                values.get("start_time", event.start_time),
                values.get("end_time", event.end_time),
                event.status,
            ).value

        event = self.store.update(event, values)

        logger.info(
            f"Updated event: {event.guid} "
            f"(fields: {', '.join(sorted(changes)) or 'none'}, status: {event.status})",
            extra=log_fields(event_guid=event.guid, status=event.status),
        )
        return event

    # =========================================================================
    # Delete Operations
    # =========================================================================

    def delete_event(self, event_guid: str, institution_guid: Optional[str] = None) -> None:
        """
        Hard delete an event.

        Other occurrences of the same routine are independent rows and
        are not affected.

        Raises:
            NotFoundError: If the event does not exist
        """
        event = self._load(event_guid, institution_guid)
        guid = event.guid
        self.store.delete(event)
        logger.info(f"Deleted event: {guid}", extra=log_fields(event_guid=guid))

    # =========================================================================
    # Response Builders
    # =========================================================================

    @staticmethod
    def build_event_response(event: Event) -> Dict[str, Any]:
        """Serialize an event for EventResponse, embedding its institution summary."""
        institution = event.institution
        return {
            "event_id": event.guid,
            "institution_id": event.institution_guid,
            "institution": {
                "institution_id": institution.guid,
                "name": institution.name,
            },
            "name": event.name,
            "type": event.type,
            "status": event.status,
            "start_time": event.start_time,
            "end_time": event.end_time,
            "location": event.location,
            "room_ids": list(event.room_ids or []),
            "care_configuration": event.care_configuration,
            "created_at": event.created_at,
            "updated_at": event.updated_at,
        }
