import logging
import os

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from journal_insights.core.config import settings

logger = logging.getLogger(__name__)

engine = None
async_session_maker = None


def create_engine_for_url(database_url: str):
    """Create an async engine configured for SQLite or PostgreSQL"""
    if database_url.startswith("sqlite"):
        return create_async_engine(
            database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=settings.DEBUG
        )

    connect_args = {}
    # SSL for RDS connections in Lambda
    if os.environ.get("AWS_LAMBDA_FUNCTION_NAME"):
        from journal_insights.core.database_url import create_ssl_context
        connect_args["ssl"] = create_ssl_context()

    return create_async_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=300,  # 5 minutes
        echo=settings.DEBUG,
        connect_args=connect_args
    )


async def init_db():
    """Initialize database connection and create tables"""
    global engine, async_session_maker

    from journal_insights.core.database_url import get_database_url
    engine = create_engine_for_url(get_database_url())

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    from journal_insights.models.base import Base
    from journal_insights.models.journal import JournalEntryDB, GeneratedInsightDB  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.debug("Tables ready on %s", engine.url.render_as_string(hide_password=True))


async def close_db():
    """Close database connection"""
    global engine
    if engine:
        await engine.dispose()
