"""Base repository shared by feature repositories."""
from abc import ABC
from typing import Generic, List, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.shared.entities.base import BaseEntity
from api.shared.query import FilterSet

T = TypeVar("T", bound=BaseEntity)


class BaseRepository(ABC, Generic[T]):
    """Session-bound repository with the common create/read helpers.

    Repositories never commit; the caller owns the session and decides where
    the transaction boundary sits.
    """

    model: Type[T]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entity: T) -> T:
        """Create new entity."""
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def create_many(self, entities: List[T]) -> List[T]:
        """Create multiple entities."""
        self.session.add_all(entities)
        await self.session.flush()
        return entities

    async def get_by_id(self, entity_id: str) -> Optional[T]:
        """Get entity by ID."""
        stmt = select(self.model).where(self.model.id == entity_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def count(self, filters: Optional[FilterSet] = None) -> int:
        """Count entities matching ``filters``."""
        stmt = select(func.count()).select_from(self.model)
        if filters is not None:
            stmt = filters.apply(stmt)
        result = await self.session.execute(stmt)
        return int(result.scalar() or 0)
