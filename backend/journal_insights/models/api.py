from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List
from datetime import datetime
import json

from journal_insights.models.domain import InsightRecord


class InsightRecordResponse(BaseModel):
    type: str
    generated_at: datetime
    payload: Dict[str, Any] = Field(default_factory=dict)
    covered_start: Optional[datetime] = None
    covered_end: Optional[datetime] = None

    @classmethod
    def from_domain(cls, record: InsightRecord) -> "InsightRecordResponse":
        covered = record.covered_range
        return cls(
            type=record.type,
            generated_at=record.generated_at,
            payload=json.loads(record.payload) if record.payload else {},
            covered_start=covered.start if covered else None,
            covered_end=covered.end if covered else None,
        )


class RunOutcomeResponse(BaseModel):
    identifier: str
    status: str
    reason: Optional[str] = None
    error_type: Optional[str] = None
    error: Optional[str] = None
    record: Optional[InsightRecordResponse] = None

    @classmethod
    def from_outcome(cls, outcome) -> "RunOutcomeResponse":
        return cls(
            identifier=outcome.identifier,
            status=outcome.status.value,
            reason=outcome.reason.value if outcome.reason else None,
            error_type=type(outcome.error).__name__ if outcome.error else None,
            error=str(outcome.error) if outcome.error else None,
            record=InsightRecordResponse.from_domain(outcome.record) if outcome.record else None,
        )


class RunAllResponse(BaseModel):
    outcomes: List[RunOutcomeResponse]
