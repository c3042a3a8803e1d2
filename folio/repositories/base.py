"""
Base Repository

Provides common database operations for all repositories.
Uses SQLAlchemy async session for all operations.
"""

from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import asc, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from folio.models.orm.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Base repository with common CRUD operations.

    Provides a consistent interface for database access across all models.
    """

    model: type[ModelT]

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def get_by_id(self, id: UUID) -> ModelT | None:
        """
        Get entity by ID.

        Args:
            id: Entity UUID

        Returns:
            Entity or None if not found
        """
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)  # type: ignore[attr-defined]
        )
        return result.scalar_one_or_none()

    async def create(self, entity: ModelT) -> ModelT:
        """
        Create a new entity.

        Args:
            entity: Entity to create

        Returns:
            Created entity with server defaults loaded
        """
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def update(self, entity: ModelT) -> ModelT:
        """
        Flush pending changes on an entity and reload it.

        Args:
            entity: Entity with updated values

        Returns:
            Updated entity
        """
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def delete(self, entity: ModelT) -> None:
        """
        Delete an entity.

        Args:
            entity: Entity to delete
        """
        await self.session.delete(entity)
        await self.session.flush()

    async def get_paginated(
        self,
        *,
        filters: list[ColumnElement[bool]] | None = None,
        sort_by: str | None = None,
        sort_dir: str = "asc",
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[ModelT], int]:
        """
        Get paginated results with optional filtering and sorting.

        Args:
            filters: List of SQLAlchemy filter conditions
            sort_by: Column name to sort by
            sort_dir: Sort direction ("asc" or "desc")
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            Tuple of (list of entities, total count)
        """
        query = select(self.model)
        count_query = select(func.count(self.model.id))  # type: ignore[attr-defined]

        if filters:
            for f in filters:
                query = query.where(f)
                count_query = count_query.where(f)

        if sort_by and hasattr(self.model, sort_by):
            order_func = desc if sort_dir == "desc" else asc
            query = query.order_by(order_func(getattr(self.model, sort_by)))

        # Get total count before pagination
        total_result = await self.session.execute(count_query)
        total = total_result.scalar() or 0

        query = query.limit(limit).offset(offset)

        result = await self.session.execute(query)
        items = list(result.scalars().all())

        return items, total
