"""Per-type generation policy: intervals, windows and activity windows."""
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, tzinfo
from enum import Enum
from typing import FrozenSet, Optional, Union


class IntervalUnit(str, Enum):
    HOURS = "hours"
    DAYS = "days"

    @property
    def duration(self) -> timedelta:
        if self is IntervalUnit.HOURS:
            return timedelta(hours=1)
        return timedelta(days=1)


@dataclass(frozen=True)
class RegenerationInterval:
    amount: int
    unit: IntervalUnit

    @classmethod
    def hours(cls, amount: int) -> "RegenerationInterval":
        return cls(amount, IntervalUnit.HOURS)

    @classmethod
    def days(cls, amount: int) -> "RegenerationInterval":
        return cls(amount, IntervalUnit.DAYS)

    def elapsed_units(self, since: datetime, now: datetime) -> int:
        """Whole units elapsed between two instants, truncated toward zero"""
        elapsed = now - since
        if elapsed < timedelta(0):
            return 0
        return int(elapsed // self.unit.duration)

    def __str__(self) -> str:
        return f"{self.amount} {self.unit.value}"


@dataclass(frozen=True)
class RecencyCount:
    """The N most recent entries, whatever their date span"""
    count: int


@dataclass(frozen=True)
class RecencyDuration:
    """Every entry dated within the last N hours/days"""
    amount: int
    unit: IntervalUnit

    @property
    def duration(self) -> timedelta:
        return self.amount * self.unit.duration


@dataclass(frozen=True)
class RollingRank:
    """Entries within ``lookback_days``, widened to at least ``floor`` and capped at ``cap``"""
    lookback_days: int
    cap: int
    floor: int

    def __post_init__(self):
        if self.floor > self.cap:
            raise ValueError("RollingRank floor must not exceed cap")


@dataclass(frozen=True)
class FixedPriorWeek:
    """The Sunday-to-Sunday calendar week before the one containing now"""


WindowStrategy = Union[RecencyCount, RecencyDuration, RollingRank, FixedPriorWeek]


def _week_offset(weekday: int, at: time) -> timedelta:
    return timedelta(days=weekday, hours=at.hour, minutes=at.minute, seconds=at.second,
                     microseconds=at.microsecond)


@dataclass(frozen=True)
class WeeklyActivityWindow:
    """Recurring weekly window, start inclusive and end exclusive.

    Weekdays use ``datetime.weekday()`` numbering (Monday is 0, Sunday is 6).
    A window may wrap past the end of the week, e.g. Sunday 03:00 to Tuesday 00:00.
    """
    start_weekday: int
    start_time: time
    end_weekday: int
    end_time: time

    def contains(self, instant: datetime, tz: tzinfo) -> bool:
        local = instant.astimezone(tz)
        offset = _week_offset(local.weekday(), local.time())
        start = _week_offset(self.start_weekday, self.start_time)
        end = _week_offset(self.end_weekday, self.end_time)
        if start <= end:
            return start <= offset < end
        return offset >= start or offset < end


@dataclass(frozen=True)
class InsightTypePolicy:
    identifier: str
    regeneration_interval: RegenerationInterval
    minimum_entry_count: int
    window: WindowStrategy
    dependency_identifiers: FrozenSet[str] = field(default_factory=frozenset)
    activity_window: Optional[WeeklyActivityWindow] = None
    context_window: Optional[WindowStrategy] = None
    chronological: bool = False
    entry_text_limit: int = 150
    user_message: str = "Generate the insight based on the provided context."

    def __post_init__(self):
        if self.minimum_entry_count < 0:
            raise ValueError(f"{self.identifier}: minimum_entry_count must be >= 0")
