"""
Recurrence expansion for care routines.

Turns a recurring care event into the concrete occurrences that follow it.
The expander is pure: it returns drafts and never touches the database.
EventLifecycleService decides how the drafts are persisted.

Bounds:
- occurrences start no later than generation time + horizon (calendar months)
- at most ``max_occurrences`` drafts per call
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterator, List, Optional, Union

from dateutil.relativedelta import relativedelta

from care_events.src.models.event import EventFrequency, EventStatus


DEFAULT_HORIZON_MONTHS = 3
DEFAULT_MAX_OCCURRENCES = 100


@dataclass
class OccurrenceDraft:
    """An occurrence that has been generated but not yet stored."""

    name: str
    type: str
    start_time: datetime
    end_time: datetime
    location: str
    room_ids: List[str] = field(default_factory=list)
    care_configuration: Optional[Dict[str, Any]] = None
    status: str = EventStatus.UPCOMING.value
    sequence: int = 0


class RecurrenceExpander:
    """
    Generates the occurrences that follow a recurring base event.

    The base occurrence itself is never part of the result. Each draft keeps
    the base event's duration and copies name, type, location, room_ids and
    care_configuration. Drafts are always Upcoming.

    Usage:
        >>> expander = RecurrenceExpander()
        >>> drafts = expander.expand(event, EventFrequency.WEEKLY, utc_now())
    """

    def __init__(
        self,
        horizon_months: int = DEFAULT_HORIZON_MONTHS,
        max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
    ):
        if horizon_months < 1:
            raise ValueError("horizon_months must be at least 1")
        if max_occurrences < 1:
            raise ValueError("max_occurrences must be at least 1")
        self.horizon_months = horizon_months
        self.max_occurrences = max_occurrences

    @staticmethod
    def is_recurring(frequency: Union[EventFrequency, str, None]) -> bool:
        """OneTime and missing frequencies do not recur."""
        if not frequency:
            return False
        return EventFrequency(frequency) != EventFrequency.ONE_TIME

    def horizon(self, generated_at: datetime) -> datetime:
        """Latest start time an occurrence may have."""
        return generated_at + relativedelta(months=self.horizon_months)

    @staticmethod
    def _shift(anchor: datetime, frequency: EventFrequency, n: int) -> datetime:
        """
        Start of the n-th occurrence after the anchor.

        Monthly steps are taken from the anchor rather than from the previous
        occurrence, so a routine on the 31st falls on the last day of shorter
        months and returns to the 31st afterwards.
        """
        if frequency == EventFrequency.DAILY:
            return anchor + timedelta(days=n)
        if frequency == EventFrequency.WEEKLY:
            return anchor + timedelta(days=7 * n)
        if frequency == EventFrequency.MONTHLY:
            return anchor + relativedelta(months=n)
        raise ValueError(f"Frequency {frequency.value} does not recur")

    def iter_starts(
        self,
        anchor: datetime,
        frequency: Union[EventFrequency, str, None],
        generated_at: datetime,
    ) -> Iterator[datetime]:
        """Yield the start times of the occurrences following ``anchor``."""
        if not self.is_recurring(frequency):
            return
        frequency = EventFrequency(frequency)
        limit = self.horizon(generated_at)

        for n in range(1, self.max_occurrences + 1):
            start = self._shift(anchor, frequency, n)
            if start > limit:
                return
            yield start

    def expand(
        self,
        base_event: Any,
        frequency: Union[EventFrequency, str, None],
        generated_at: datetime,
    ) -> List[OccurrenceDraft]:
        """
        Generate occurrences for a base event.

        Args:
            base_event: Object exposing name, type, start_time, end_time,
                location, room_ids and care_configuration (an Event row or
                an OccurrenceDraft)
            frequency: Repeat cadence; OneTime or None yields no occurrences
            generated_at: Generation time the horizon is measured from

        Returns:
            Drafts ordered by start time, excluding the base event
        """
        duration = base_event.end_time - base_event.start_time

        drafts = []
        for sequence, start in enumerate(
            self.iter_starts(base_event.start_time, frequency, generated_at), start=1
        ):
            drafts.append(
                OccurrenceDraft(
                    name=base_event.name,
                    type=base_event.type,
                    start_time=start,
                    end_time=start + duration,
                    location=base_event.location,
                    room_ids=list(base_event.room_ids or []),
                    care_configuration=copy.deepcopy(base_event.care_configuration),
                    sequence=sequence,
                )
            )
        return drafts
