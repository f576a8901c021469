"""Store contracts consumed by the orchestrator, and their SQLAlchemy implementations."""
from datetime import datetime
from typing import List, Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from journal_insights.models.domain import CoveredRange, InsightRecord, JournalEntry
from journal_insights.repositories.insight import InsightRepository
from journal_insights.repositories.journal import JournalEntryRepository


class EntryStore(Protocol):
    async def list_all(self) -> List[JournalEntry]:
        """Every entry, newest first"""

    async def list_in_range(self, start: datetime, end: datetime) -> List[JournalEntry]:
        """Entries with start <= date < end, newest first"""


class InsightStore(Protocol):
    async def latest(self, insight_type: str) -> Optional[InsightRecord]:
        ...

    async def save(
        self,
        insight_type: str,
        generated_at: datetime,
        payload: str,
        covered_range: Optional[CoveredRange] = None,
    ) -> InsightRecord:
        ...

    async def touch_timestamp(self, insight_type: str, new_timestamp: datetime) -> None:
        ...


class SqlEntryStore:
    """EntryStore backed by the journal_entries table, one session per call"""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker
        self.entry_repo = JournalEntryRepository()

    async def list_all(self) -> List[JournalEntry]:
        async with self.session_maker() as db:
            entries = await self.entry_repo.get_all_sorted(db)
            return [self.entry_repo.to_domain(entry) for entry in entries]

    async def list_in_range(self, start: datetime, end: datetime) -> List[JournalEntry]:
        async with self.session_maker() as db:
            entries = await self.entry_repo.get_in_range(db, start, end)
            return [self.entry_repo.to_domain(entry) for entry in entries]


class SqlInsightStore:
    """InsightStore backed by the generated_insights table, one session per call"""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker
        self.insight_repo = InsightRepository()

    async def latest(self, insight_type: str) -> Optional[InsightRecord]:
        async with self.session_maker() as db:
            record = await self.insight_repo.get_latest(db, insight_type)
            return self.insight_repo.to_domain(record) if record else None

    async def all_latest(self) -> List[InsightRecord]:
        async with self.session_maker() as db:
            records = await self.insight_repo.get_all_latest(db)
            return [self.insight_repo.to_domain(record) for record in records]

    async def save(
        self,
        insight_type: str,
        generated_at: datetime,
        payload: str,
        covered_range: Optional[CoveredRange] = None,
    ) -> InsightRecord:
        async with self.session_maker() as db:
            record = await self.insight_repo.upsert(
                db, insight_type, generated_at, payload, covered_range
            )
            return self.insight_repo.to_domain(record)

    async def touch_timestamp(self, insight_type: str, new_timestamp: datetime) -> None:
        async with self.session_maker() as db:
            await self.insight_repo.touch(db, insight_type, new_timestamp)
