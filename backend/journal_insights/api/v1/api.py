from fastapi import APIRouter

from journal_insights.api.v1.endpoints import insights

api_router = APIRouter()

api_router.include_router(insights.router, prefix="/insights", tags=["insights"])
