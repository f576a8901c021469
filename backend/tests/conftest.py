"""Shared fakes for insight engine tests"""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from journal_insights.insights.prompts import PromptBuilder
from journal_insights.models.domain import CoveredRange, InsightRecord, JournalEntry, Mood

UTC = timezone.utc

# A Wednesday, well outside the week-in-review activity window
NOW = datetime(2025, 6, 11, 12, 0, tzinfo=UTC)


def make_entry(date: datetime, text: str = "Went for a walk", mood: Mood = Mood.NEUTRAL,
               entry_id: Optional[str] = None) -> JournalEntry:
    return JournalEntry(
        id=entry_id or f"entry-{date.isoformat()}",
        date=date,
        text=text,
        mood=mood,
    )


def entries_hours_ago(*hours: float, now: datetime = NOW) -> List[JournalEntry]:
    return [make_entry(now - timedelta(hours=h)) for h in hours]


# Minimal valid backend answers, keyed by result model name
DEFAULT_RESULTS: Dict[str, dict] = {
    "WeeklySummaryResult": {"mainSummary": "A steady week."},
    "MoodTrendResult": {"overallTrend": "Stable", "dominantMood": "Neutral"},
    "RecommendationResult": {
        "recommendations": [{"title": "Mindful Morning", "description": "Breathe for five minutes."}]
    },
    "AIReflectionResult": {"insightMessage": "You keep showing up."},
    "DailyReflectionResult": {"snapshotText": "A calm day."},
    "ForecastResult": {"moodPredictionText": "Likely steady."},
    "NarrativeResult": {"storySnippet": "Small steps.", "narrativeText": "You kept going."},
    "FeelInsightResult": {"moodSnapshotText": "Mostly calm."},
    "ThinkInsightResult": {"themeOverviewText": "Work and rest.", "valueReflectionText": "Balance."},
    "ActInsightResult": {"actionForecastText": "More walks ahead."},
    "LearnInsightResult": {"takeawayText": "Rest matters."},
    "WeekInReviewResult": {"summaryText": "A full week."},
}


class FakeEntryStore:
    """In-memory entries; ``gate`` holds ``list_all`` until it is set"""

    def __init__(self, entries: Optional[List[JournalEntry]] = None, error: Optional[Exception] = None,
                 gate: Optional[asyncio.Event] = None):
        self.entries = list(entries or [])
        self.error = error
        self.gate = gate
        self.list_calls = 0

    async def list_all(self) -> List[JournalEntry]:
        self.list_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error:
            raise self.error
        return sorted(self.entries, key=lambda e: e.date, reverse=True)

    async def list_in_range(self, start: datetime, end: datetime) -> List[JournalEntry]:
        return [e for e in await self.list_all() if start <= e.date < end]


class FakeInsightStore:
    def __init__(self, records: Optional[List[InsightRecord]] = None):
        self.records: Dict[str, InsightRecord] = {r.type: r for r in records or []}
        self.saves: List[InsightRecord] = []
        self.touches: List[tuple] = []
        self.failing_reads: set = set()
        self.save_error: Optional[Exception] = None
        self.touch_error: Optional[Exception] = None

    async def latest(self, insight_type: str) -> Optional[InsightRecord]:
        if insight_type in self.failing_reads:
            raise RuntimeError(f"read failed for {insight_type}")
        return self.records.get(insight_type)

    async def all_latest(self) -> List[InsightRecord]:
        return [self.records[key] for key in sorted(self.records)]

    async def save(self, insight_type: str, generated_at: datetime, payload: str,
                   covered_range: Optional[CoveredRange] = None) -> InsightRecord:
        if self.save_error:
            raise self.save_error
        record = InsightRecord(insight_type, generated_at, payload, covered_range)
        self.records[insight_type] = record
        self.saves.append(record)
        return record

    async def touch_timestamp(self, insight_type: str, new_timestamp: datetime) -> None:
        if self.touch_error:
            raise self.touch_error
        self.touches.append((insight_type, new_timestamp))
        record = self.records.get(insight_type)
        if record is not None:
            self.records[insight_type] = InsightRecord(
                record.type, new_timestamp, record.payload, record.covered_range
            )


class FakeBackend:
    """Records every call; answers from ``results`` or DEFAULT_RESULTS"""

    def __init__(self, results: Optional[Dict[str, object]] = None, error: Optional[Exception] = None,
                 gate: Optional[asyncio.Event] = None):
        self.results = dict(results or {})
        self.error = error
        self.gate = gate
        self.calls: List[tuple] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def schemas_called(self) -> List[str]:
        return [schema.__name__ for _, _, schema in self.calls]

    async def generate_text(self, system_prompt: str, user_message: str) -> str:
        raise NotImplementedError

    async def generate_structured(self, system_prompt, user_message, result_schema):
        self.calls.append((system_prompt, user_message, result_schema))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        answer = self.results.get(result_schema.__name__, DEFAULT_RESULTS[result_schema.__name__])
        if isinstance(answer, dict):
            return result_schema.model_validate(answer)
        return answer


def word_counter(text: str) -> int:
    return len(text.split())


@pytest.fixture
def prompt_builder():
    """Prompt builder that counts words instead of loading a tokenizer"""
    return PromptBuilder(tz=UTC, max_context_tokens=100000, reserved_tokens=0, token_counter=word_counter)


@pytest.fixture
def entry_store():
    return FakeEntryStore()


@pytest.fixture
def insight_store():
    return FakeInsightStore()


@pytest.fixture
def backend():
    return FakeBackend()
