"""Decide whether an insight type should be regenerated.

Elapsed time is measured in whole policy units (hours or days) truncated from
the exact duration, never by counting calendar boundaries. A record written at
23:59 is therefore not "one day old" at 00:01.

Types whose window is a fixed calendar period (the prior week) also compare
periods: a record that covers an earlier period than the current window is
stale whatever its age, so a run landing late in one activity window cannot
push the next period's run out of the following window.
"""
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Optional, Sequence

from journal_insights.models.domain import CoveredRange, InsightRecord, JournalEntry
from .policy import InsightTypePolicy


class Decision(str, Enum):
    PROCEED = "proceed"
    SKIP_TOO_SOON = "too_soon"
    SKIP_NO_NEW_DATA = "no_new_data"
    SKIP_INSUFFICIENT_DATA = "insufficient_data"
    SKIP_OUTSIDE_ACTIVITY_WINDOW = "outside_activity_window"

    @property
    def is_skip(self) -> bool:
        return self is not Decision.PROCEED


def should_generate(
    now: datetime,
    last_record: Optional[InsightRecord],
    policy: InsightTypePolicy,
    candidate_entries: Sequence[JournalEntry],
    force_generation: bool = False,
    tz: tzinfo = timezone.utc,
    covered_range: Optional[CoveredRange] = None,
) -> Decision:
    """Apply the staleness rules in order.

    ``force_generation`` bypasses the interval, activity-window and new-data
    rules. The minimum entry count is always enforced. ``covered_range`` is the
    period the current window covers, if it is a fixed one; when the last
    record covers a different period, the interval and new-data rules do not
    apply.
    """
    compare_to_last = (
        not force_generation
        and last_record is not None
        and (covered_range is None or last_record.covered_range == covered_range)
    )

    if compare_to_last:
        interval = policy.regeneration_interval
        if interval.elapsed_units(last_record.generated_at, now) < interval.amount:
            return Decision.SKIP_TOO_SOON

    if (
        not force_generation
        and policy.activity_window is not None
        and not policy.activity_window.contains(now, tz)
    ):
        return Decision.SKIP_OUTSIDE_ACTIVITY_WINDOW

    if len(candidate_entries) < policy.minimum_entry_count:
        return Decision.SKIP_INSUFFICIENT_DATA

    if compare_to_last:
        if not any(entry.date > last_record.generated_at for entry in candidate_entries):
            return Decision.SKIP_NO_NEW_DATA

    return Decision.PROCEED
