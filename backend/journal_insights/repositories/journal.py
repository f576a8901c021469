from datetime import datetime
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc

from .base import BaseRepository
from journal_insights.models.journal import JournalEntryDB
from journal_insights.models.domain import JournalEntry, Mood, as_utc


class JournalEntryRepository(BaseRepository[JournalEntryDB]):
    def __init__(self):
        super().__init__(JournalEntryDB)

    async def get_all_sorted(self, db: AsyncSession) -> List[JournalEntryDB]:
        """Get every journal entry, newest first"""
        result = await db.execute(
            select(JournalEntryDB).order_by(desc(JournalEntryDB.date))
        )
        return result.scalars().all()

    async def get_in_range(
        self,
        db: AsyncSession,
        start: datetime,
        end: datetime
    ) -> List[JournalEntryDB]:
        """Get entries with start <= date < end, newest first"""
        result = await db.execute(
            select(JournalEntryDB)
            .where(JournalEntryDB.date >= start, JournalEntryDB.date < end)
            .order_by(desc(JournalEntryDB.date))
        )
        return result.scalars().all()

    async def create_entry(
        self,
        db: AsyncSession,
        date: datetime,
        text: str,
        mood: Mood,
        entry_id: Optional[str] = None
    ) -> JournalEntryDB:
        """Create a journal entry (used by the journaling feature and fixtures)"""
        values = {"date": date, "text": text, "mood": mood.value}
        if entry_id:
            values["id"] = entry_id
        return await self.create(db, **values)

    def to_domain(self, entry: JournalEntryDB) -> JournalEntry:
        return JournalEntry(
            id=str(entry.id),
            date=as_utc(entry.date),
            text=entry.text or "",
            mood=Mood(entry.mood),
        )
