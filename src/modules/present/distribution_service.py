"""
PresentDistributionService - campaign fan-out into user present queues
======================================================================

Handles:
- Finding campaigns active at the request time
- Skipping campaigns the user already received
- Inserting one pending present plus one receipt marker per new campaign

Exactly-once delivery per (user, campaign) rests on two things only: both
batches commit in one transaction, and the receipt marker table carries a
unique constraint on (user_id, present_all_id). A concurrent distributor
that loses the race hits that constraint, rolls back, and re-reads.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.core.database.service import DatabaseService
from src.core.exceptions import StoreError
from src.core.logging.logger import get_logger
from src.core.validation.input_validator import InputValidator
from src.database.models.present import UserPresent, UserPresentAllReceivedHistory
from src.modules.present.repository import (
    PresentAllMasterRepository,
    PresentAllReceivedHistoryRepository,
    UserPresentRepository,
)
from src.modules.shared.base_service import BaseService

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession


class PresentDistributionService(BaseService):
    """Materializes active campaign presents for one user."""

    def __init__(
        self,
        present_repo: Optional[UserPresentRepository] = None,
        master_repo: Optional[PresentAllMasterRepository] = None,
        history_repo: Optional[PresentAllReceivedHistoryRepository] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(logger or get_logger(__name__))
        self._presents = present_repo or UserPresentRepository(self.log)
        self._masters = master_repo or PresentAllMasterRepository(self.log)
        self._history = history_repo or PresentAllReceivedHistoryRepository(self.log)

    async def distribute(
        self,
        user_id: int,
        request_at: int,
        session: Optional[AsyncSession] = None,
    ) -> List[UserPresent]:
        """
        Insert pending presents for every active campaign the user lacks.

        When `session` is provided, the operation participates in the caller's
        transaction; a unique constraint violation then propagates unchanged
        and the caller owns the rollback.

        Args:
            user_id: Receiving user
            request_at: Request time (epoch seconds) used for the window check
                and every stamp written
            session: Optional DB session to compose with outer transaction

        Returns:
            Newly created presents (empty when nothing was due)

        Raises:
            ValidationError: Invalid user id or request time
            StoreError: Store failure; nothing was written
        """
        user_id = InputValidator.validate_id(user_id, "user_id")
        request_at = InputValidator.validate_integer(request_at, "request_at", min_value=0)

        self.log_operation(
            "distribute_presents",
            user_id=user_id,
            request_at=request_at,
            has_session=session is not None,
        )

        if session is not None:
            try:
                return await self._distribute_once(session, user_id, request_at)
            except IntegrityError:
                raise
            except SQLAlchemyError as exc:
                self.log_error("distribute_presents", exc, user_id=user_id)
                raise StoreError("distribute_presents", exc) from exc

        max_attempts = max(1, int(self.get_config("PRESENT_DISTRIBUTION_MAX_ATTEMPTS", 2)))

        for attempt in range(1, max_attempts + 1):
            try:
                async with DatabaseService.get_transaction() as tx_session:
                    return await self._distribute_once(tx_session, user_id, request_at)

            except IntegrityError:
                self.log.warning(
                    "Receipt marker conflict; re-reading received campaigns",
                    extra={
                        "user_id": user_id,
                        "attempt": attempt,
                        "max_attempts": max_attempts,
                    },
                )

            except SQLAlchemyError as exc:
                self.log_error("distribute_presents", exc, user_id=user_id, attempt=attempt)
                raise StoreError("distribute_presents", exc) from exc

        self.log.info(
            "Receipt marker conflicts persisted; campaigns already received",
            extra={"user_id": user_id, "attempts": max_attempts},
        )
        return []

    async def _distribute_once(
        self,
        session: AsyncSession,
        user_id: int,
        request_at: int,
    ) -> List[UserPresent]:
        campaigns = await self._masters.find_active(session, request_at)
        if not campaigns:
            self.log.debug(
                "No active campaigns",
                extra={"user_id": user_id, "request_at": request_at},
            )
            return []

        received = await self._history.find_received_ids(
            session, user_id, [campaign.id for campaign in campaigns]
        )
        due = [campaign for campaign in campaigns if campaign.id not in received]
        if not due:
            self.log.debug(
                "All active campaigns already received",
                extra={"user_id": user_id, "active_count": len(campaigns)},
            )
            return []

        presents = [
            UserPresent(
                user_id=user_id,
                sent_at=request_at,
                item_type=campaign.item_type,
                item_id=campaign.item_id,
                amount=int(campaign.amount),
                present_message=campaign.present_message,
                created_at=request_at,
                updated_at=request_at,
            )
            for campaign in due
        ]
        markers = [
            UserPresentAllReceivedHistory(
                user_id=user_id,
                present_all_id=campaign.id,
                received_at=request_at,
                created_at=request_at,
                updated_at=request_at,
            )
            for campaign in due
        ]

        self._presents.add_many(session, presents)
        self._history.add_many(session, markers)
        await self._history.flush(session)

        self.log.info(
            "Campaign presents distributed",
            extra={
                "user_id": user_id,
                "present_count": len(presents),
                "present_all_ids": [campaign.id for campaign in due],
            },
        )

        return presents
