"""Window selection: which entries a run sends to the backend as context."""
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone, tzinfo
from operator import attrgetter
from typing import List, Optional, Sequence

from journal_insights.models.domain import CoveredRange, JournalEntry
from .policy import (
    FixedPriorWeek,
    RecencyCount,
    RecencyDuration,
    RollingRank,
    WindowStrategy,
)


@dataclass(frozen=True)
class Window:
    entries: List[JournalEntry] = field(default_factory=list)  # newest first
    covered_range: Optional[CoveredRange] = None

    def __len__(self) -> int:
        return len(self.entries)


def prior_week_range(now: datetime, tz: tzinfo) -> CoveredRange:
    """[Sunday 00:00, next Sunday 00:00) of the week before the one containing ``now``"""
    local = now.astimezone(tz)
    days_since_sunday = (local.weekday() + 1) % 7
    current_week_start = local.date() - timedelta(days=days_since_sunday)
    prior_week_start = current_week_start - timedelta(days=7)
    return CoveredRange(
        start=datetime.combine(prior_week_start, time(0), tzinfo=tz).astimezone(timezone.utc),
        end=datetime.combine(current_week_start, time(0), tzinfo=tz).astimezone(timezone.utc),
    )


def select_window(
    entries: Sequence[JournalEntry],
    strategy: WindowStrategy,
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> Window:
    ordered = sorted(entries, key=attrgetter("date"), reverse=True)

    if isinstance(strategy, RecencyCount):
        return Window(ordered[:strategy.count])

    if isinstance(strategy, RecencyDuration):
        cutoff = now - strategy.duration
        return Window([entry for entry in ordered if entry.date >= cutoff])

    if isinstance(strategy, RollingRank):
        cutoff = now - timedelta(days=strategy.lookback_days)
        selected = [entry for entry in ordered if entry.date >= cutoff]
        if len(selected) < strategy.floor:
            selected = ordered[:strategy.floor]
        return Window(selected[:strategy.cap])

    if isinstance(strategy, FixedPriorWeek):
        covered = prior_week_range(now, tz)
        return Window(
            [entry for entry in ordered if covered.contains(entry.date)],
            covered_range=covered,
        )

    raise TypeError(f"Unsupported window strategy: {strategy!r}")
