from sqlalchemy import Column, String, Text, DateTime, Index
import uuid

from .base import TimestampedModel


class JournalEntryDB(TimestampedModel):
    __tablename__ = "journal_entries"

    id = Column(
        String(36),  # String for SQLite compatibility
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    date = Column(DateTime(timezone=True), nullable=False)
    text = Column(Text, nullable=False, default="")
    mood = Column(String(20), nullable=False)

    __table_args__ = (
        Index("idx_journal_entries_date", "date"),
    )


class GeneratedInsightDB(TimestampedModel):
    """Latest generated payload per insight type (no history is kept)"""
    __tablename__ = "generated_insights"

    type = Column(String(64), primary_key=True)
    generated_at = Column(DateTime(timezone=True), nullable=False)
    payload = Column(Text, nullable=False)
    covered_start = Column(DateTime(timezone=True), nullable=True)
    covered_end = Column(DateTime(timezone=True), nullable=True)
