"""
Unit tests for event status derivation, reconciliation and ordering.
"""

import pytest
from datetime import datetime, timedelta, timezone

from care_events.src.models import EventStatus
from care_events.src.services.event_status import (
    calculate_status,
    is_active,
    lifecycle_sort_key,
    reconcile_status,
    sort_by_lifecycle,
)


START = datetime(2026, 11, 2, 10, 0)
END = datetime(2026, 11, 2, 11, 0)


class TestCalculateStatus:
    """Tests for calculate_status."""

    @pytest.mark.parametrize("now,expected", [
        (START - timedelta(seconds=1), EventStatus.UPCOMING),
        (START, EventStatus.ONGOING),
        (START + timedelta(minutes=30), EventStatus.ONGOING),
        (END - timedelta(microseconds=1), EventStatus.ONGOING),
        (END, EventStatus.ENDED),
        (END + timedelta(days=30), EventStatus.ENDED),
    ])
    def test_status_follows_the_clock(self, now, expected):
        """Test boundaries: start is Ongoing, end is Ended."""
        assert calculate_status(now, START, END) == expected

    @pytest.mark.parametrize("now", [
        START - timedelta(days=1),
        START + timedelta(minutes=5),
        END + timedelta(days=1),
    ])
    def test_cancelled_is_never_recalculated(self, now):
        """Test Cancelled stays Cancelled at any time."""
        assert calculate_status(now, START, END, EventStatus.CANCELLED) == EventStatus.CANCELLED
        assert calculate_status(now, START, END, "Cancelled") == EventStatus.CANCELLED

    @pytest.mark.parametrize("previous", ["Upcoming", "Ongoing", "Ended", None])
    def test_previous_non_cancelled_status_is_ignored(self, previous):
        """Test only Cancelled affects the result."""
        now = START + timedelta(minutes=1)
        assert calculate_status(now, START, END, previous) == EventStatus.ONGOING

    def test_zero_length_event_is_ended_once_reached(self):
        """Test start == end goes straight from Upcoming to Ended."""
        assert calculate_status(START - timedelta(seconds=1), START, START) == EventStatus.UPCOMING
        assert calculate_status(START, START, START) == EventStatus.ENDED

    def test_scenario_status_walk(self):
        """Test the status of one event as time moves across it."""
        start = datetime(2026, 5, 1, 10, 0)
        end = datetime(2026, 5, 1, 11, 0)

        assert calculate_status(datetime(2026, 5, 1, 9, 59), start, end) == EventStatus.UPCOMING
        assert calculate_status(datetime(2026, 5, 1, 10, 30), start, end) == EventStatus.ONGOING
        assert calculate_status(datetime(2026, 5, 1, 11, 0), start, end) == EventStatus.ENDED


class TestReconcileStatus:
    """Tests for reconcile_status."""

    def test_stale_status_is_reported_changed(self):
        """Test an Upcoming row past its start needs writing."""
        result = reconcile_status(START + timedelta(minutes=1), START, END, "Upcoming")

        assert result.status == EventStatus.ONGOING
        assert result.changed is True

    def test_current_status_is_unchanged(self):
        """Test an accurate row needs no write."""
        result = reconcile_status(START - timedelta(hours=1), START, END, "Upcoming")

        assert result.status == EventStatus.UPCOMING
        assert result.changed is False

    def test_reconcile_is_idempotent(self):
        """Test reconciling the result again at the same instant is a no-op."""
        now = END + timedelta(hours=2)
        first = reconcile_status(now, START, END, "Upcoming")
        second = reconcile_status(now, START, END, first.status)

        assert first.changed is True
        assert second.status == first.status
        assert second.changed is False

    def test_cancelled_never_changes(self):
        """Test Cancelled rows are never rewritten."""
        result = reconcile_status(END + timedelta(days=1), START, END, "Cancelled")

        assert result.status == EventStatus.CANCELLED
        assert result.changed is False


class TestLifecycleOrdering:
    """Tests for is_active, lifecycle_sort_key and sort_by_lifecycle."""

    def test_active_statuses(self):
        """Test Upcoming and Ongoing are active."""
        assert is_active(EventStatus.UPCOMING)
        assert is_active("Ongoing")
        assert not is_active("Ended")
        assert not is_active(EventStatus.CANCELLED)

    def test_active_events_sort_before_inactive(self):
        """Test any active key is smaller than any inactive key."""
        late_active = lifecycle_sort_key("Upcoming", datetime(2030, 1, 1))
        early_ended = lifecycle_sort_key("Ended", datetime(2000, 1, 1))

        assert late_active < early_ended

    def test_aware_and_naive_starts_compare_equal(self):
        """Test aware datetimes are keyed as UTC."""
        naive = lifecycle_sort_key("Upcoming", datetime(2026, 1, 1, 12, 0))
        aware = lifecycle_sort_key(
            "Upcoming", datetime(2026, 1, 1, 13, 0, tzinfo=timezone(timedelta(hours=1)))
        )

        assert naive == aware

    def test_scenario_listing_order(self):
        """Test active ascending first, then ended/cancelled descending."""
        events = [
            ("E1", "Ended", datetime(2026, 5, 1)),
            ("E2", "Upcoming", datetime(2026, 5, 20)),
            ("E3", "Ongoing", datetime(2026, 5, 9)),
            ("E4", "Ended", datetime(2026, 5, 5)),
            ("E5", "Upcoming", datetime(2026, 5, 12)),
        ]

        ordered = sort_by_lifecycle(events, status_of=lambda e: e[1], start_of=lambda e: e[2])

        assert [e[0] for e in ordered] == ["E3", "E5", "E2", "E4", "E1"]

    def test_cancelled_sorts_with_ended(self):
        """Test Cancelled events fall in the inactive group, most recent first."""
        events = [
            ("cancelled", "Cancelled", datetime(2026, 5, 30)),
            ("ended", "Ended", datetime(2026, 5, 1)),
            ("upcoming", "Upcoming", datetime(2026, 6, 1)),
        ]

        ordered = sort_by_lifecycle(events, status_of=lambda e: e[1], start_of=lambda e: e[2])

        assert [e[0] for e in ordered] == ["upcoming", "cancelled", "ended"]
