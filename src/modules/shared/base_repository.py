"""
Base Repository Pattern

Purpose
-------
Provides a type-safe, generic repository abstraction for database operations
following SQLAlchemy 2.0 async patterns. Repositories encapsulate data access
logic and provide a consistent interface for reads and batch writes.

Design Notes
------------
This base repository provides:
- Filtered reads with ordering, limit and offset
- Counting utility
- Batch add with explicit flush
- Structured debug logging for every operation

What this class does NOT do:
- Manage transactions (services/DatabaseService handle that)
- Contain business logic
- Physically delete rows (presents and markers are never removed)

Usage
-----
    from src.database.models import UserPresent
    from src.modules.shared import BaseRepository

    class UserPresentRepository(BaseRepository[UserPresent]):
        async def find_by_user(
            self, session: AsyncSession, user_id: int
        ) -> list[UserPresent]:
            return await self.find_many_where(
                session,
                UserPresent.user_id == user_id
            )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, select

if TYPE_CHECKING:
    from logging import Logger
    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Generic base repository for type-safe database operations.

    Type Parameters:
        T: The SQLAlchemy model class this repository manages
    """

    def __init__(self, model_class: Type[T], logger: Logger) -> None:
        """
        Initialize repository with model class and logger.

        Args:
            model_class: The SQLAlchemy model class
            logger: Structured logger instance
        """
        self.model_class = model_class
        self.log = logger

    async def find_one_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        for_update: bool = False,
    ) -> Optional[T]:
        """
        Find a single record matching conditions.

        Args:
            session: Database session
            *conditions: SQLAlchemy filter conditions
            for_update: If True, use SELECT FOR UPDATE

        Returns:
            Model instance or None if not found
        """
        stmt = select(self.model_class).where(*conditions)

        if for_update:
            stmt = stmt.with_for_update()

        result = await session.execute(stmt)
        instance = result.scalar_one_or_none()

        self.log.debug(
            f"Repository.find_one_where: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
                "found": instance is not None,
                "locked": for_update,
            },
        )

        return instance

    async def find_many_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        order_by: Optional[Sequence[Any]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[T]:
        """
        Find multiple records matching conditions.

        Args:
            session: Database session
            *conditions: SQLAlchemy filter conditions
            order_by: Optional ordering clauses, applied in sequence
            limit: Optional maximum number of results
            offset: Optional number of rows to skip

        Returns:
            List of model instances
        """
        stmt = select(self.model_class).where(*conditions)

        if order_by:
            stmt = stmt.order_by(*order_by)

        if limit is not None:
            stmt = stmt.limit(limit)

        if offset:
            stmt = stmt.offset(offset)

        result = await session.execute(stmt)
        instances = list(result.scalars().all())

        self.log.debug(
            f"Repository.find_many_where: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
                "found_count": len(instances),
                "limit": limit,
                "offset": offset,
            },
        )

        return instances

    async def count(
        self, session: AsyncSession, *conditions: ColumnElement[bool]
    ) -> int:
        """
        Count records matching conditions.

        Args:
            session: Database session
            *conditions: SQLAlchemy filter conditions

        Returns:
            Number of matching records
        """
        stmt = select(func.count()).select_from(self.model_class).where(*conditions)
        result = await session.execute(stmt)
        count = result.scalar_one()

        self.log.debug(
            f"Repository.count: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
                "count": count,
            },
        )

        return count

    def add(self, session: AsyncSession, instance: T) -> T:
        """Add a new instance to the session."""
        session.add(instance)

        self.log.debug(
            f"Repository.add: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
            },
        )

        return instance

    def add_many(self, session: AsyncSession, instances: Sequence[T]) -> List[T]:
        """
        Add multiple instances to the session.

        Args:
            session: Database session
            instances: Sequence of model instances to add

        Returns:
            List of added instances
        """
        session.add_all(instances)

        self.log.debug(
            f"Repository.add_many: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
                "count": len(instances),
            },
        )

        return list(instances)

    async def flush(self, session: AsyncSession) -> None:
        """Flush pending changes; constraint violations surface here."""
        await session.flush()

        self.log.debug(
            f"Repository.flush: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
            },
        )
