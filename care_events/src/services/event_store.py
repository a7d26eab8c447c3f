"""
Event persistence over SQLAlchemy.

EventStore is the only place that issues queries or commits for events.
Every write is its own unit of work: it commits on success and rolls the
session back before re-raising on failure, so a failed write never leaves
the session in a half-flushed state for the caller's next operation.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from care_events.src.models import Event
from care_events.src.services.exceptions import NotFoundError
from care_events.src.services.guid import GuidService
from care_events.src.utils.clock import utc_now


@dataclass
class EventFilter:
    """
    Candidate selection for event queries.

    Attributes:
        institution_id: Owning institution (internal ID), required
        type: Exact event type
        status: Exact stored status
        start_date: Lower bound on start_time (inclusive)
        end_date: Upper bound on start_time (inclusive)
        search: Case-insensitive substring of name or location
        room_id: Room the event must apply to
    """

    institution_id: int
    type: Optional[str] = None
    status: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    search: Optional[str] = None
    room_id: Optional[str] = None


def applies_to_room(event: Event, room_id: str) -> bool:
    """
    Check room membership.

    Events with no rooms are institution-wide and apply to every room.
    """
    room_ids = event.room_ids or []
    return not room_ids or room_id in room_ids


class EventStore:
    """
    Repository for Event rows.

    Usage:
        >>> store = EventStore(db_session)
        >>> event = store.create(institution_id=1, name="Bingo", ...)
        >>> events = store.find_many(EventFilter(institution_id=1, type="Social"))
    """

    def __init__(self, db: Session):
        """
        Initialize event store.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    # =========================================================================
    # Reads
    # =========================================================================

    def get_by_guid(self, guid: str, institution_id: Optional[int] = None) -> Event:
        """
        Get an event by GUID.

        Args:
            guid: Event GUID (evt_xxx format)
            institution_id: If provided, the event must belong to this institution

        Returns:
            Event instance

        Raises:
            NotFoundError: If the GUID is malformed, unknown, or owned by
                another institution
        """
        try:
            uuid_value = GuidService.parse_guid(guid, "evt")
        except ValueError:
            raise NotFoundError("Event", guid)

        query = (
            self.db.query(Event)
            .options(joinedload(Event.institution))
            .filter(Event.uuid == uuid_value)
        )
        if institution_id is not None:
            query = query.filter(Event.institution_id == institution_id)

        event = query.first()
        if not event:
            raise NotFoundError("Event", guid)
        return event

    def _filtered_query(self, criteria: EventFilter):
        query = (
            self.db.query(Event)
            .options(joinedload(Event.institution))
            .filter(Event.institution_id == criteria.institution_id)
        )

        if criteria.type:
            query = query.filter(Event.type == criteria.type)
        if criteria.status:
            query = query.filter(Event.status == criteria.status)
        if criteria.start_date:
            query = query.filter(Event.start_time >= criteria.start_date)
        if criteria.end_date:
            query = query.filter(Event.start_time <= criteria.end_date)
        if criteria.search:
            query = query.filter(
                or_(
                    Event.name.icontains(criteria.search, autoescape=True),
                    Event.location.icontains(criteria.search, autoescape=True),
                )
            )
        return query

    def find_many(self, criteria: EventFilter) -> List[Event]:
        """
        Load every event matching the filter, ordered by start_time ascending.

        Room membership is evaluated after loading because JSON array
        containment is not portable across dialects.
        """
        events = (
            self._filtered_query(criteria)
            .order_by(Event.start_time.asc(), Event.id.asc())
            .all()
        )
        if criteria.room_id:
            events = [e for e in events if applies_to_room(e, criteria.room_id)]
        return events

    def count(self, criteria: EventFilter) -> int:
        """Count events matching the filter."""
        if criteria.room_id:
            return len(self.find_many(criteria))
        return self._filtered_query(criteria).order_by(None).count()

    # =========================================================================
    # Writes
    # =========================================================================

    def create(self, institution_id: int, **fields: Any) -> Event:
        """
        Insert a new event and commit.

        Args:
            institution_id: Owning institution (internal ID)
            **fields: Event columns (name, type, status, start_time, ...)

        Returns:
            The stored Event
        """
        event = Event(institution_id=institution_id, **fields)
        self.db.add(event)
        self._commit()
        self.db.refresh(event)
        return event

    def update(self, event: Event, changes: Dict[str, Any]) -> Event:
        """Apply column changes to an event and commit."""
        for field, value in changes.items():
            setattr(event, field, value)
        event.updated_at = utc_now()
        self._commit()
        self.db.refresh(event)
        return event

    def update_status(self, event: Event, status: str) -> Event:
        """Write a single reconciled status."""
        return self.update(event, {"status": status})

    def update_statuses(self, corrections: Iterable[Tuple[Event, str]]) -> int:
        """
        Write several reconciled statuses in one commit.

        Returns:
            Number of events written
        """
        now = utc_now()
        written = 0
        for event, status in corrections:
            event.status = status
            event.updated_at = now
            written += 1
        if written:
            self._commit()
        return written

    def delete(self, event: Event) -> None:
        """Hard delete a single event."""
        self.db.delete(event)
        self._commit()
