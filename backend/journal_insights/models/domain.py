"""Domain types shared by the stores, the insight engine and the API layer."""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class Mood(str, Enum):
    HAPPY = "happy"
    NEUTRAL = "neutral"
    SAD = "sad"
    ANXIOUS = "anxious"
    EXCITED = "excited"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to an aware UTC value (SQLite drops tzinfo)"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class JournalEntry:
    id: str
    date: datetime
    text: str
    mood: Mood


@dataclass(frozen=True)
class CoveredRange:
    """Half-open [start, end) period summarized by a record"""
    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


@dataclass(frozen=True)
class InsightRecord:
    type: str
    generated_at: datetime
    payload: str
    covered_range: Optional[CoveredRange] = None
