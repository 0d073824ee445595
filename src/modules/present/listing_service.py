"""
PresentListingService - paginated pending presents
==================================================

Pages are 1-based. The page and the total count are read in separate
sessions, so a concurrent claim between the two reads can make `has_next`
stale by one page; callers tolerate that.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy.exc import SQLAlchemyError

from src.core.database.service import DatabaseService
from src.core.exceptions import StoreError
from src.core.logging.logger import get_logger
from src.core.validation.input_validator import InputValidator
from src.modules.present.repository import UserPresentRepository
from src.modules.present.types import PresentPage
from src.modules.shared.base_service import BaseService

if TYPE_CHECKING:
    from logging import Logger


class PresentListingService(BaseService):
    """Reads one page of a user's pending presents."""

    def __init__(
        self,
        present_repo: Optional[UserPresentRepository] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(logger or get_logger(__name__))
        self._presents = present_repo or UserPresentRepository(self.log)

    async def list_presents(
        self,
        user_id: int,
        page_index: int,
        page_size: Optional[int] = None,
    ) -> PresentPage:
        """
        Return page `page_index` of pending presents.

        Ordered by `created_at` descending, then `id` ascending.

        Raises:
            ValidationError: page_index < 1 or other invalid input (no store
                access happens)
            StoreError: Store failure
        """
        page_index = InputValidator.validate_positive_integer(page_index, "page_index")
        user_id = InputValidator.validate_id(user_id, "user_id")
        if page_size is None:
            page_size = self.get_config("PRESENT_COUNT_PER_PAGE", 100)
        page_size = InputValidator.validate_positive_integer(page_size, "page_size")

        offset = (page_index - 1) * page_size

        try:
            async with DatabaseService.get_session() as session:
                presents = await self._presents.find_pending_page(
                    session, user_id, limit=page_size, offset=offset
                )

            async with DatabaseService.get_session() as session:
                total_count = await self._presents.count_pending(session, user_id)

        except SQLAlchemyError as exc:
            self.log_error("list_presents", exc, user_id=user_id, page_index=page_index)
            raise StoreError("list_presents", exc) from exc

        page = PresentPage(
            presents=presents,
            has_next_page=total_count > offset + page_size,
            page_index=page_index,
            page_size=page_size,
            total_count=total_count,
        )

        self.log.debug(
            "Presents listed",
            extra={
                "user_id": user_id,
                "page_index": page_index,
                "returned": len(presents),
                "total_count": total_count,
                "has_next_page": page.has_next_page,
            },
        )

        return page
