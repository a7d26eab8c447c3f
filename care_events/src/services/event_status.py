"""
Event status derivation.

Status is a projection of wall-clock time over an event's start and end:

    Upcoming --(start reached)--> Ongoing --(end reached)--> Ended
    Upcoming --(manual)---------> Cancelled

Cancelled is absorbing: no calculation ever replaces it. Everything here is
pure, so the functions can be used from read paths, list sorting and tests
without a database.
"""

from datetime import datetime
from typing import Iterable, List, NamedTuple, Optional, Tuple, TypeVar, Union

from care_events.src.models.event import EventStatus
from care_events.src.utils.clock import to_naive_utc


StatusLike = Union[EventStatus, str, None]

T = TypeVar("T")

ACTIVE_STATUSES = frozenset({EventStatus.UPCOMING, EventStatus.ONGOING})

_EPOCH = datetime(1970, 1, 1)


def _as_status(value: StatusLike) -> Optional[EventStatus]:
    if value is None or isinstance(value, EventStatus):
        return value
    return EventStatus(value)


def calculate_status(
    now: datetime,
    start: datetime,
    end: datetime,
    previous_status: StatusLike = None,
) -> EventStatus:
    """
    Derive the status of an event at ``now``.

    Args:
        now: Reference time
        start: Event start
        end: Event end
        previous_status: Stored status; Cancelled is returned unchanged

    Returns:
        EventStatus for the given instant. A zero-length event
        (start == end) is Ended as soon as now reaches it.
    """
    if _as_status(previous_status) == EventStatus.CANCELLED:
        return EventStatus.CANCELLED
    if now < start:
        return EventStatus.UPCOMING
    if now < end:
        return EventStatus.ONGOING
    return EventStatus.ENDED


class Reconciliation(NamedTuple):
    """Outcome of reconciling a stored status against the clock."""
    status: EventStatus
    changed: bool


def reconcile_status(
    now: datetime,
    start: datetime,
    end: datetime,
    stored_status: StatusLike,
) -> Reconciliation:
    """
    Recompute a stored status.

    ``changed`` is True only when the stored value is stale and must be
    written back. Reconciling the result again at the same ``now`` always
    yields ``changed=False``.
    """
    stored = _as_status(stored_status)
    status = calculate_status(now, start, end, stored)
    return Reconciliation(status=status, changed=status != stored)


def is_active(status: StatusLike) -> bool:
    """Upcoming and Ongoing events are active; Ended and Cancelled are not."""
    return _as_status(status) in ACTIVE_STATUSES


def lifecycle_sort_key(status: StatusLike, start: datetime) -> Tuple[int, float]:
    """
    Composite ordering key for event listings.

    Active events sort before the rest. Active events are ordered by start
    ascending, the others by start descending (most recent first).
    """
    timestamp = (to_naive_utc(start) - _EPOCH).total_seconds()
    if is_active(status):
        return (0, timestamp)
    return (1, -timestamp)


def sort_by_lifecycle(
    items: Iterable[T],
    status_of,
    start_of,
) -> List[T]:
    """Sort items with lifecycle_sort_key using accessor callables."""
    return sorted(items, key=lambda item: lifecycle_sort_key(status_of(item), start_of(item)))
