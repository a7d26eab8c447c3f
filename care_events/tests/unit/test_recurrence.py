"""
Unit tests for RecurrenceExpander.

Tests cadence steps, horizon and cap bounds, and copying of the base
event's attributes into occurrence drafts.
"""

import pytest
from datetime import datetime, timedelta
from types import SimpleNamespace

from dateutil.relativedelta import relativedelta

from care_events.src.models import EventFrequency
from care_events.src.services.recurrence import OccurrenceDraft, RecurrenceExpander


GENERATED_AT = datetime(2026, 1, 1, 8, 0)


@pytest.fixture
def expander():
    """Expander with default bounds (3 months, 100 occurrences)."""
    return RecurrenceExpander()


@pytest.fixture
def base_event():
    """Factory for a base event exposing the attributes the expander reads."""
    def _create(start_time=datetime(2026, 1, 1, 9, 0), duration=timedelta(minutes=45), **kwargs):
        values = {
            'name': 'Physiotherapy',
            'type': 'Care',
            'start_time': start_time,
            'end_time': start_time + duration,
            'location': 'Therapy room',
            'room_ids': ['room-101', 'room-102'],
            'care_configuration': {'subType': 'Therapy', 'frequency': 'Weekly'},
        }
        values.update(kwargs)
        return SimpleNamespace(**values)
    return _create


class TestRecurrenceExpanderInit:
    """Tests for bounds validation."""

    def test_defaults(self, expander):
        """Test default bounds."""
        assert expander.horizon_months == 3
        assert expander.max_occurrences == 100

    @pytest.mark.parametrize("kwargs", [
        {'horizon_months': 0},
        {'max_occurrences': 0},
    ])
    def test_rejects_non_positive_bounds(self, kwargs):
        """Test zero bounds are rejected."""
        with pytest.raises(ValueError):
            RecurrenceExpander(**kwargs)


class TestIsRecurring:
    """Tests for is_recurring."""

    @pytest.mark.parametrize("frequency,expected", [
        (None, False),
        ('OneTime', False),
        (EventFrequency.ONE_TIME, False),
        ('Daily', True),
        (EventFrequency.WEEKLY, True),
        ('Monthly', True),
    ])
    def test_is_recurring(self, frequency, expected):
        assert RecurrenceExpander.is_recurring(frequency) is expected


class TestExpand:
    """Tests for expand."""

    def test_one_time_yields_nothing(self, expander, base_event):
        """Test OneTime and missing frequencies produce no occurrences."""
        assert expander.expand(base_event(), 'OneTime', GENERATED_AT) == []
        assert expander.expand(base_event(), None, GENERATED_AT) == []

    def test_weekly_scenario(self, expander, base_event):
        """Test weekly expansion stays within the 3-month horizon."""
        base = base_event()

        drafts = expander.expand(base, 'Weekly', GENERATED_AT)
        horizon = GENERATED_AT + relativedelta(months=3)

        assert 12 <= len(drafts) <= 13
        assert drafts[0].start_time == datetime(2026, 1, 8, 9, 0)
        for previous, current in zip(drafts, drafts[1:]):
            assert current.start_time - previous.start_time == timedelta(days=7)
        assert all(d.start_time <= horizon for d in drafts)
        assert drafts[-1].start_time + timedelta(days=7) > horizon

    def test_base_event_is_excluded(self, expander, base_event):
        """Test the base start never appears among the drafts."""
        base = base_event()

        drafts = expander.expand(base, 'Daily', GENERATED_AT)

        assert all(d.start_time > base.start_time for d in drafts)

    def test_daily_steps(self, expander, base_event):
        """Test daily steps are one day apart."""
        drafts = expander.expand(base_event(), 'Daily', GENERATED_AT)

        assert drafts[0].start_time == datetime(2026, 1, 2, 9, 0)
        assert drafts[1].start_time == datetime(2026, 1, 3, 9, 0)

    def test_daily_is_capped(self, base_event):
        """Test the occurrence cap applies before the horizon."""
        expander = RecurrenceExpander(horizon_months=12, max_occurrences=100)

        drafts = expander.expand(base_event(), 'Daily', GENERATED_AT)

        assert len(drafts) == 100
        assert drafts[-1].sequence == 100

    def test_monthly_steps_from_anchor(self, expander, base_event):
        """Test month-end anchors clamp without drifting."""
        base = base_event(start_time=datetime(2026, 1, 31, 9, 0))

        drafts = expander.expand(base, 'Monthly', datetime(2026, 1, 31, 8, 0))

        assert [d.start_time for d in drafts] == [
            datetime(2026, 2, 28, 9, 0),
            datetime(2026, 3, 31, 9, 0),
        ]

    def test_horizon_is_inclusive(self, base_event):
        """Test an occurrence exactly on the horizon is included."""
        expander = RecurrenceExpander(horizon_months=1)
        base = base_event(start_time=datetime(2026, 1, 1, 8, 0))

        drafts = expander.expand(base, 'Monthly', GENERATED_AT)

        assert [d.start_time for d in drafts] == [datetime(2026, 2, 1, 8, 0)]

    def test_base_beyond_horizon_yields_nothing(self, expander, base_event):
        """Test a base event starting past the horizon has no occurrences."""
        base = base_event(start_time=datetime(2026, 6, 1, 9, 0))

        assert expander.expand(base, 'Weekly', GENERATED_AT) == []

    def test_drafts_copy_base_attributes(self, expander, base_event):
        """Test drafts keep duration and copy shared fields."""
        base = base_event(duration=timedelta(minutes=45))

        drafts = expander.expand(base, 'Weekly', GENERATED_AT)

        for draft in drafts:
            assert isinstance(draft, OccurrenceDraft)
            assert draft.end_time - draft.start_time == timedelta(minutes=45)
            assert draft.name == 'Physiotherapy'
            assert draft.type == 'Care'
            assert draft.location == 'Therapy room'
            assert draft.room_ids == ['room-101', 'room-102']
            assert draft.care_configuration == {'subType': 'Therapy', 'frequency': 'Weekly'}
            assert draft.status == 'Upcoming'

    def test_drafts_do_not_share_mutable_state(self, expander, base_event):
        """Test mutating a draft leaves the base and siblings untouched."""
        base = base_event()
        drafts = expander.expand(base, 'Weekly', GENERATED_AT)

        drafts[0].room_ids.append('room-999')
        drafts[0].care_configuration['subType'] = 'Other'

        assert base.room_ids == ['room-101', 'room-102']
        assert base.care_configuration['subType'] == 'Therapy'
        assert drafts[1].room_ids == ['room-101', 'room-102']
        assert drafts[1].care_configuration['subType'] == 'Therapy'
