"""Tests for the staleness evaluator"""
from datetime import datetime, time, timedelta

import pytest

from conftest import NOW, UTC, entries_hours_ago, make_entry
from journal_insights.insights.policy import (
    InsightTypePolicy,
    RecencyCount,
    RegenerationInterval,
    WeeklyActivityWindow,
)
from journal_insights.insights.registry import WEEK_IN_REVIEW_WINDOW
from journal_insights.insights.staleness import Decision, should_generate
from journal_insights.insights.windows import prior_week_range
from journal_insights.models.domain import InsightRecord


def make_policy(**overrides) -> InsightTypePolicy:
    values = dict(
        identifier="weeklySummary",
        regeneration_interval=RegenerationInterval.days(1),
        minimum_entry_count=1,
        window=RecencyCount(10),
    )
    values.update(overrides)
    return InsightTypePolicy(**values)


def record_at(generated_at: datetime, insight_type: str = "weeklySummary") -> InsightRecord:
    return InsightRecord(insight_type, generated_at, '{"mainSummary": "old"}')


class TestShouldGenerate:
    """Tests for should_generate rule ordering"""

    def test_first_run_proceeds(self):
        """No record and enough entries generates"""
        decision = should_generate(NOW, None, make_policy(), entries_hours_ago(1))
        assert decision is Decision.PROCEED

    def test_too_soon(self):
        """A record younger than the interval is skipped even with new entries"""
        last = record_at(NOW - timedelta(hours=23))
        decision = should_generate(NOW, last, make_policy(), entries_hours_ago(1))
        assert decision is Decision.SKIP_TOO_SOON

    def test_elapsed_units_are_whole_durations_not_calendar_days(self):
        """23:59 -> 00:01 is not a day, even though the date changed"""
        now = datetime(2025, 6, 11, 0, 1, tzinfo=UTC)
        last = record_at(datetime(2025, 6, 10, 23, 59, tzinfo=UTC))
        entries = [make_entry(datetime(2025, 6, 11, 0, 0, tzinfo=UTC))]
        assert should_generate(now, last, make_policy(), entries) is Decision.SKIP_TOO_SOON

    def test_exactly_one_interval_elapsed_proceeds(self):
        last = record_at(NOW - timedelta(days=1))
        decision = should_generate(NOW, last, make_policy(), entries_hours_ago(1))
        assert decision is Decision.PROCEED

    def test_hour_interval(self):
        policy = make_policy(regeneration_interval=RegenerationInterval.hours(6))
        entries = entries_hours_ago(0.5)
        assert should_generate(NOW, record_at(NOW - timedelta(hours=5, minutes=59)), policy, entries) \
            is Decision.SKIP_TOO_SOON
        assert should_generate(NOW, record_at(NOW - timedelta(hours=6)), policy, entries) \
            is Decision.PROCEED

    def test_record_from_the_future_is_too_soon(self):
        """A clock step backwards counts as zero elapsed units"""
        last = record_at(NOW + timedelta(hours=2))
        assert should_generate(NOW, last, make_policy(), entries_hours_ago(1)) is Decision.SKIP_TOO_SOON

    def test_insufficient_data(self):
        policy = make_policy(minimum_entry_count=3)
        decision = should_generate(NOW, None, policy, entries_hours_ago(1, 2))
        assert decision is Decision.SKIP_INSUFFICIENT_DATA

    def test_no_new_data(self):
        """Interval elapsed but every entry predates the record"""
        last = record_at(NOW - timedelta(days=2))
        entries = entries_hours_ago(50, 60)
        assert should_generate(NOW, last, make_policy(), entries) is Decision.SKIP_NO_NEW_DATA

    def test_entry_at_generated_at_is_not_new(self):
        last = record_at(NOW - timedelta(days=2))
        entries = [make_entry(last.generated_at)]
        assert should_generate(NOW, last, make_policy(), entries) is Decision.SKIP_NO_NEW_DATA

    def test_too_soon_wins_over_insufficient_data(self):
        policy = make_policy(minimum_entry_count=5)
        last = record_at(NOW - timedelta(hours=1))
        assert should_generate(NOW, last, policy, []) is Decision.SKIP_TOO_SOON

    def test_insufficient_data_wins_over_no_new_data(self):
        policy = make_policy(minimum_entry_count=3)
        last = record_at(NOW - timedelta(days=2))
        entries = entries_hours_ago(50, 60)
        assert should_generate(NOW, last, policy, entries) is Decision.SKIP_INSUFFICIENT_DATA

    def test_zero_minimum_with_no_entries_and_no_record(self):
        policy = make_policy(minimum_entry_count=0)
        assert should_generate(NOW, None, policy, []) is Decision.PROCEED


class TestForceGeneration:
    """Tests for force_generation bypass semantics"""

    def test_force_bypasses_interval(self):
        last = record_at(NOW - timedelta(minutes=5))
        decision = should_generate(NOW, last, make_policy(), entries_hours_ago(1), force_generation=True)
        assert decision is Decision.PROCEED

    def test_force_bypasses_no_new_data(self):
        last = record_at(NOW - timedelta(minutes=5))
        decision = should_generate(NOW, last, make_policy(), entries_hours_ago(50), force_generation=True)
        assert decision is Decision.PROCEED

    def test_force_bypasses_activity_window(self):
        policy = make_policy(activity_window=WEEK_IN_REVIEW_WINDOW)
        decision = should_generate(NOW, None, policy, entries_hours_ago(1), force_generation=True)
        assert decision is Decision.PROCEED

    def test_force_never_bypasses_minimum_count(self):
        policy = make_policy(minimum_entry_count=3)
        decision = should_generate(NOW, None, policy, entries_hours_ago(1), force_generation=True)
        assert decision is Decision.SKIP_INSUFFICIENT_DATA


class TestActivityWindow:
    """Tests for the Sunday 03:00 to Tuesday 00:00 activity window"""

    @pytest.mark.parametrize("instant, expected", [
        (datetime(2025, 6, 15, 2, 59, 59, tzinfo=UTC), Decision.SKIP_OUTSIDE_ACTIVITY_WINDOW),  # Sun
        (datetime(2025, 6, 15, 3, 0, tzinfo=UTC), Decision.PROCEED),  # Sun 03:00
        (datetime(2025, 6, 16, 23, 59, 59, tzinfo=UTC), Decision.PROCEED),  # Mon
        (datetime(2025, 6, 17, 0, 0, tzinfo=UTC), Decision.SKIP_OUTSIDE_ACTIVITY_WINDOW),  # Tue 00:00
        (datetime(2025, 6, 13, 12, 0, tzinfo=UTC), Decision.SKIP_OUTSIDE_ACTIVITY_WINDOW),  # Fri
    ])
    def test_boundaries(self, instant, expected):
        policy = make_policy(activity_window=WEEK_IN_REVIEW_WINDOW)
        entries = [make_entry(instant - timedelta(hours=1))]
        assert should_generate(instant, None, policy, entries) is expected

    def test_too_soon_wins_over_outside_window(self):
        policy = make_policy(activity_window=WEEK_IN_REVIEW_WINDOW)
        last = record_at(NOW - timedelta(hours=1))
        assert should_generate(NOW, last, policy, entries_hours_ago(0.5)) is Decision.SKIP_TOO_SOON

    def test_window_evaluated_in_local_time(self):
        """Tuesday 03:30 UTC is still Monday evening in New York"""
        from zoneinfo import ZoneInfo
        tz = ZoneInfo("America/New_York")
        instant = datetime(2025, 6, 17, 3, 30, tzinfo=UTC)
        assert WEEK_IN_REVIEW_WINDOW.contains(instant, tz)
        assert not WEEK_IN_REVIEW_WINDOW.contains(instant, UTC)

    def test_non_wrapping_window(self):
        window = WeeklyActivityWindow(0, time(9, 0), 0, time(17, 0))
        assert window.contains(datetime(2025, 6, 9, 9, 0, tzinfo=UTC), UTC)
        assert not window.contains(datetime(2025, 6, 9, 17, 0, tzinfo=UTC), UTC)
        assert not window.contains(datetime(2025, 6, 10, 12, 0, tzinfo=UTC), UTC)


class TestReviewPeriod:
    """A fixed-period type compares against the last record only within the same period"""

    @pytest.fixture
    def policy(self):
        return make_policy(
            identifier="weekInReview",
            regeneration_interval=RegenerationInterval.days(7),
            activity_window=WEEK_IN_REVIEW_WINDOW,
        )

    def test_new_week_generates_even_within_interval(self, policy):
        """Generated late Monday for June 1-8; the next Sunday reviews June 8-15"""
        generated_at = datetime(2025, 6, 9, 23, 59, tzinfo=UTC)
        last = InsightRecord("weekInReview", generated_at, '{"summaryText": "old"}',
                             prior_week_range(generated_at, UTC))
        now = datetime(2025, 6, 15, 4, 0, tzinfo=UTC)
        current = prior_week_range(now, UTC)
        entries = [make_entry(datetime(2025, 6, 12, 20, 0, tzinfo=UTC))]

        assert last.covered_range != current
        assert should_generate(now, last, policy, entries) is Decision.SKIP_TOO_SOON
        assert should_generate(now, last, policy, entries, covered_range=current) is Decision.PROCEED

    def test_new_week_ignores_no_new_data(self, policy):
        generated_at = datetime(2025, 6, 9, 23, 59, tzinfo=UTC)
        last = InsightRecord("weekInReview", generated_at, '{"summaryText": "old"}',
                             prior_week_range(generated_at, UTC))
        now = datetime(2025, 6, 16, 4, 0, tzinfo=UTC)
        entries = [make_entry(datetime(2025, 6, 8, 10, 0, tzinfo=UTC))]

        decision = should_generate(now, last, policy, entries, covered_range=prior_week_range(now, UTC))
        assert decision is Decision.PROCEED

    def test_same_week_is_too_soon(self, policy):
        now = datetime(2025, 6, 16, 4, 0, tzinfo=UTC)
        current = prior_week_range(now, UTC)
        last = InsightRecord("weekInReview", now - timedelta(days=1), '{"summaryText": "old"}', current)
        entries = [make_entry(datetime(2025, 6, 12, 20, 0, tzinfo=UTC))]

        decision = should_generate(now, last, policy, entries, covered_range=current)
        assert decision is Decision.SKIP_TOO_SOON
