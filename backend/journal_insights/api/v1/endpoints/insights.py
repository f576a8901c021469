from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List

from journal_insights.core.deps import get_insight_store, get_orchestrator
from journal_insights.insights.orchestrator import GenerationOrchestrator
from journal_insights.insights.stores import SqlInsightStore
from journal_insights.models.api import InsightRecordResponse, RunAllResponse, RunOutcomeResponse

router = APIRouter()


def _require_known_type(orchestrator: GenerationOrchestrator, insight_type: str) -> None:
    if insight_type not in orchestrator.registry:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown insight type: {insight_type}"
        )


@router.get("", response_model=List[InsightRecordResponse])
async def list_insights(insight_store: SqlInsightStore = Depends(get_insight_store)):
    """Latest stored record of every insight type that has one"""
    records = await insight_store.all_latest()
    return [InsightRecordResponse.from_domain(record) for record in records]


@router.post("/run-all", response_model=RunAllResponse)
async def run_all_insights(
    force: bool = Query(False),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator)
):
    """Run every insight type, dependencies first"""
    outcomes = await orchestrator.run_all(force_generation=force)
    return RunAllResponse(
        outcomes=[RunOutcomeResponse.from_outcome(outcome) for outcome in outcomes.values()]
    )


@router.get("/{insight_type}", response_model=InsightRecordResponse)
async def get_insight(
    insight_type: str,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
    insight_store: SqlInsightStore = Depends(get_insight_store)
):
    _require_known_type(orchestrator, insight_type)

    record = await insight_store.latest(insight_type)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Insight '{insight_type}' is not yet available"
        )
    return InsightRecordResponse.from_domain(record)


@router.post("/{insight_type}/run", response_model=RunOutcomeResponse)
async def run_insight(
    insight_type: str,
    force: bool = Query(False),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator)
):
    """Trigger one insight type; the outcome says whether it generated, skipped or failed"""
    _require_known_type(orchestrator, insight_type)
    outcome = await orchestrator.run(insight_type, force_generation=force)
    return RunOutcomeResponse.from_outcome(outcome)
