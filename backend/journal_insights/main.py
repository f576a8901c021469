from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from zoneinfo import ZoneInfo
import logging

from mangum import Mangum

from journal_insights import database
from journal_insights.core.config import settings
from journal_insights.api.v1.api import api_router
from journal_insights.agents.backend import PydanticAIBackend
from journal_insights.insights.orchestrator import GenerationOrchestrator
from journal_insights.insights.stores import SqlEntryStore, SqlInsightStore

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_orchestrator(session_maker) -> GenerationOrchestrator:
    """Wire the SQL stores and the Anthropic backend into an orchestrator"""
    insight_store = SqlInsightStore(session_maker)
    return GenerationOrchestrator(
        entry_store=SqlEntryStore(session_maker),
        insight_store=insight_store,
        backend=PydanticAIBackend(),
        tz=ZoneInfo(settings.INSIGHTS_TIMEZONE),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await database.init_db()
    logger.info("Database initialized successfully")

    orchestrator = build_orchestrator(database.async_session_maker)
    app.state.orchestrator = orchestrator
    app.state.insight_store = orchestrator.insight_store
    logger.info("Insight engine ready: %d insight types", len(orchestrator.registry.identifiers()))
    yield
    # Shutdown
    await database.close_db()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix="/api/v1")


# Health check
@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": settings.VERSION}


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.APP_NAME}"}


# Lambda handler for AWS deployment
lambda_handler = Mangum(app, lifespan="on")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
