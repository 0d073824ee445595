"""
Present repositories.

Data access for the three present tables. No business logic and no
transaction management: every method takes the caller's session.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence, Set

from sqlalchemy import select, update

from src.core.logging.logger import get_logger
from src.database.models.present import (
    PresentAllMaster,
    UserPresent,
    UserPresentAllReceivedHistory,
)
from src.modules.shared.base_repository import BaseRepository

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession


class UserPresentRepository(BaseRepository[UserPresent]):
    """Pending and claimed presents per user."""

    def __init__(self, logger: Optional[Logger] = None) -> None:
        super().__init__(UserPresent, logger or get_logger(__name__))

    async def find_pending_page(
        self,
        session: AsyncSession,
        user_id: int,
        limit: int,
        offset: int,
    ) -> List[UserPresent]:
        """Pending presents, newest first, ties broken by ascending id."""
        return await self.find_many_where(
            session,
            UserPresent.user_id == user_id,
            UserPresent.deleted_at.is_(None),
            order_by=(UserPresent.created_at.desc(), UserPresent.id.asc()),
            limit=limit,
            offset=offset,
        )

    async def count_pending(self, session: AsyncSession, user_id: int) -> int:
        return await self.count(
            session,
            UserPresent.user_id == user_id,
            UserPresent.deleted_at.is_(None),
        )

    async def find_pending_by_ids(
        self,
        session: AsyncSession,
        user_id: int,
        present_ids: Sequence[int],
    ) -> List[UserPresent]:
        """Requested presents that belong to the user and are still pending."""
        if not present_ids:
            return []

        return await self.find_many_where(
            session,
            UserPresent.id.in_(list(present_ids)),
            UserPresent.user_id == user_id,
            UserPresent.deleted_at.is_(None),
            order_by=(UserPresent.id.asc(),),
        )

    async def mark_claimed(
        self,
        session: AsyncSession,
        user_id: int,
        present_ids: Sequence[int],
        request_at: int,
    ) -> Set[int]:
        """
        Conditionally transition presents to claimed.

        Only rows still pending are touched, so a row claimed by a concurrent
        transaction is excluded here rather than claimed twice.

        Returns:
            Ids of the rows this statement actually transitioned
        """
        if not present_ids:
            return set()

        stmt = (
            update(UserPresent)
            .where(
                UserPresent.id.in_(list(present_ids)),
                UserPresent.user_id == user_id,
                UserPresent.deleted_at.is_(None),
            )
            .values(deleted_at=request_at, updated_at=request_at)
            .returning(UserPresent.id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        transitioned = set(result.scalars().all())

        self.log.debug(
            "Repository.mark_claimed: UserPresent",
            extra={
                "model": "UserPresent",
                "requested_count": len(present_ids),
                "transitioned_count": len(transitioned),
            },
        )

        return transitioned


class PresentAllMasterRepository(BaseRepository[PresentAllMaster]):
    """Read-only campaign definitions."""

    def __init__(self, logger: Optional[Logger] = None) -> None:
        super().__init__(PresentAllMaster, logger or get_logger(__name__))

    async def find_active(
        self, session: AsyncSession, request_at: int
    ) -> List[PresentAllMaster]:
        """Campaigns whose inclusive window contains `request_at`."""
        return await self.find_many_where(
            session,
            PresentAllMaster.registered_start_at <= request_at,
            PresentAllMaster.registered_end_at >= request_at,
            order_by=(PresentAllMaster.id.asc(),),
        )


class PresentAllReceivedHistoryRepository(BaseRepository[UserPresentAllReceivedHistory]):
    """Append-only receipt markers."""

    def __init__(self, logger: Optional[Logger] = None) -> None:
        super().__init__(UserPresentAllReceivedHistory, logger or get_logger(__name__))

    async def find_received_ids(
        self,
        session: AsyncSession,
        user_id: int,
        present_all_ids: Sequence[int],
    ) -> Set[int]:
        """
        Campaign ids among `present_all_ids` the user already received.

        An empty set means nothing received yet; it is never an error.
        """
        if not present_all_ids:
            return set()

        stmt = select(UserPresentAllReceivedHistory.present_all_id).where(
            UserPresentAllReceivedHistory.user_id == user_id,
            UserPresentAllReceivedHistory.present_all_id.in_(list(present_all_ids)),
        )
        result = await session.execute(stmt)
        received = set(result.scalars().all())

        self.log.debug(
            "Repository.find_received_ids: UserPresentAllReceivedHistory",
            extra={
                "model": "UserPresentAllReceivedHistory",
                "requested_count": len(present_all_ids),
                "found_count": len(received),
            },
        )

        return received
