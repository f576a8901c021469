from fastapi import HTTPException, Request, status

from journal_insights.insights.orchestrator import GenerationOrchestrator
from journal_insights.insights.stores import SqlInsightStore


def get_orchestrator(request: Request) -> GenerationOrchestrator:
    """Dependency to get the orchestrator built at startup"""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Insight engine not initialized"
        )
    return orchestrator


def get_insight_store(request: Request) -> SqlInsightStore:
    """Dependency to get the insight store shared with the orchestrator"""
    store = getattr(request.app.state, "insight_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Insight engine not initialized"
        )
    return store
