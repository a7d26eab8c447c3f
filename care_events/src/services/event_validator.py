"""
Structural validation for event creation and updates.

Rules are checked in a fixed order and the first violation is raised:

1. end_time must be after start_time
2. care_configuration is present exactly when type is Care
3. (updates) status may only be set to Cancelled, and only from Upcoming;
   a Care event's configuration cannot be removed

Nothing here touches the database; the service passes in the stored event
and its current status.
"""

from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from care_events.src.models.event import EventFrequency, EventStatus, EventType
from care_events.src.services.exceptions import ValidationError


_UNSET = object()


def _type_value(value: Any) -> str:
    """Coerce an EventType or raw string to its value, rejecting unknown types."""
    try:
        return EventType(value).value
    except ValueError:
        allowed = ", ".join(t.value for t in EventType)
        raise ValidationError(
            f"Unknown event type '{value}'. Allowed types: {allowed}",
            field="type",
        )


class EventValidator:
    """
    Enforces event invariants before anything is persisted.

    Usage:
        >>> validator = EventValidator()
        >>> validator.validate_create(event_data)
        >>> validator.validate_update(existing, changes, current_status)
    """

    @staticmethod
    def validate_times(start_time: datetime, end_time: datetime) -> None:
        """Rule 1: end_time strictly after start_time."""
        if end_time <= start_time:
            raise ValidationError(
                "End time must be after start time",
                field="end_time",
            )

    @staticmethod
    def validate_care_configuration(
        event_type: Any,
        care_configuration: Optional[Mapping[str, Any]],
    ) -> None:
        """Rule 2: care_configuration present if and only if type is Care."""
        is_care = _type_value(event_type) == EventType.CARE.value

        if is_care and not care_configuration:
            raise ValidationError(
                "Care configuration is required for Care events",
                field="care_configuration",
            )

        if not is_care and care_configuration:
            raise ValidationError(
                "Care configuration should only be provided for Care events",
                field="care_configuration",
            )

        if care_configuration:
            frequency = care_configuration.get("frequency")
            if frequency is not None:
                try:
                    EventFrequency(frequency)
                except ValueError:
                    raise ValidationError(
                        f"Unknown care frequency '{frequency}'",
                        field="care_configuration.frequency",
                    )

    def validate_create(
        self,
        event_type: Any,
        start_time: datetime,
        end_time: datetime,
        care_configuration: Optional[Mapping[str, Any]],
    ) -> None:
        """Validate a new event (rules 1 and 2)."""
        self.validate_times(start_time, end_time)
        self.validate_care_configuration(event_type, care_configuration)

    @staticmethod
    def resolve_care_configuration(
        existing: Any,
        changes: Mapping[str, Any],
    ) -> Optional[Dict[str, Any]]:
        """
        Care configuration an event will carry once ``changes`` are applied.

        An explicit value in ``changes`` wins (including an explicit None).
        Otherwise the stored configuration is kept while the event stays a
        Care event and dropped when the type moves away from Care.
        """
        new_type = _type_value(changes.get("type") or existing.type)

        supplied = changes.get("care_configuration", _UNSET)
        if supplied is not _UNSET:
            return dict(supplied) if supplied else None

        if new_type == EventType.CARE.value:
            return existing.care_configuration
        return None

    def validate_update(
        self,
        existing: Any,
        changes: Mapping[str, Any],
        current_status: EventStatus,
    ) -> None:
        """
        Validate a patch against the stored event.

        Args:
            existing: Stored event
            changes: Fields being set (only keys present in the patch)
            current_status: Status of the stored event as of now

        Raises:
            ValidationError: On the first violated rule
        """
        start_time = changes.get("start_time") or existing.start_time
        end_time = changes.get("end_time") or existing.end_time
        self.validate_times(start_time, end_time)

        new_type = _type_value(changes.get("type") or existing.type)
        is_care = new_type == EventType.CARE.value

        if (
            is_care
            and "care_configuration" in changes
            and changes["care_configuration"] is None
        ):
            raise ValidationError(
                "Care configuration cannot be removed from Care events",
                field="care_configuration",
            )

        self.validate_care_configuration(
            new_type, self.resolve_care_configuration(existing, changes)
        )

        requested = changes.get("status")
        if requested is not None:
            try:
                requested = EventStatus(requested)
            except ValueError:
                raise ValidationError(f"Unknown status '{requested}'", field="status")
            if requested != EventStatus.CANCELLED:
                raise ValidationError(
                    f"Status cannot be set to {requested.value}; only Cancelled "
                    "may be set explicitly",
                    field="status",
                )
            if EventStatus(current_status) != EventStatus.UPCOMING:
                raise ValidationError(
                    "Only Upcoming events can be cancelled",
                    field="status",
                )
