from typing import TypeVar, Generic, Type, Optional, Any
from sqlalchemy.ext.asyncio import AsyncSession
from journal_insights.models.base import TimestampedModel

T = TypeVar('T', bound=TimestampedModel)


class BaseRepository(Generic[T]):
    def __init__(self, model_class: Type[T]):
        self.model_class = model_class

    async def create(self, db: AsyncSession, **kwargs) -> T:
        """Create a new record"""
        db_obj = self.model_class(**kwargs)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def get_by_key(self, db: AsyncSession, key: Any) -> Optional[T]:
        """Get record by primary key"""
        return await db.get(self.model_class, key)
