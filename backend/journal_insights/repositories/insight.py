from datetime import datetime
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from .base import BaseRepository
from journal_insights.models.base import utcnow
from journal_insights.models.journal import GeneratedInsightDB
from journal_insights.models.domain import InsightRecord, CoveredRange, as_utc


class InsightRepository(BaseRepository[GeneratedInsightDB]):
    def __init__(self):
        super().__init__(GeneratedInsightDB)

    async def get_latest(self, db: AsyncSession, insight_type: str) -> Optional[GeneratedInsightDB]:
        """Get the stored record for an insight type"""
        return await self.get_by_key(db, insight_type)

    async def get_all_latest(self, db: AsyncSession) -> List[GeneratedInsightDB]:
        result = await db.execute(
            select(GeneratedInsightDB).order_by(GeneratedInsightDB.type)
        )
        return result.scalars().all()

    async def upsert(
        self,
        db: AsyncSession,
        insight_type: str,
        generated_at: datetime,
        payload: str,
        covered_range: Optional[CoveredRange] = None
    ) -> GeneratedInsightDB:
        """Replace the record for an insight type in a single commit"""
        record = await self.get_latest(db, insight_type)
        if record is None:
            record = GeneratedInsightDB(type=insight_type)
            db.add(record)

        record.generated_at = generated_at
        record.payload = payload
        record.covered_start = covered_range.start if covered_range else None
        record.covered_end = covered_range.end if covered_range else None
        record.updated_at = utcnow()

        await db.commit()
        await db.refresh(record)
        return record

    async def touch(self, db: AsyncSession, insight_type: str, generated_at: datetime) -> bool:
        """Bump generated_at without touching the payload"""
        result = await db.execute(
            update(GeneratedInsightDB)
            .where(GeneratedInsightDB.type == insight_type)
            .values(generated_at=generated_at, updated_at=utcnow())
        )
        await db.commit()
        return result.rowcount > 0

    def to_domain(self, record: GeneratedInsightDB) -> InsightRecord:
        covered_range = None
        if record.covered_start is not None and record.covered_end is not None:
            covered_range = CoveredRange(
                start=as_utc(record.covered_start),
                end=as_utc(record.covered_end),
            )
        return InsightRecord(
            type=record.type,
            generated_at=as_utc(record.generated_at),
            payload=record.payload,
            covered_range=covered_range,
        )
