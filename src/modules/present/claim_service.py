"""
PresentClaimService - transactional batch claim
===============================================

Handles:
- Validating the requested id batch and the viewer identity
- Transitioning still-pending presents to claimed
- Converting each claimed present into an item grant

Business Logic
--------------
- All-or-nothing per call: every transition and every grant commit together,
  or the transaction rolls back and all requested presents stay pending
- The claim UPDATE only matches rows whose `deleted_at` is still null; ids it
  does not return were won by a concurrent claim and are skipped silently
- Requested ids that are unknown, owned by another user, or already claimed
  are not an error; if none remain the claim succeeds empty
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from src.core.database.service import DatabaseService
from src.core.exceptions import StoreError
from src.core.logging.logger import get_logger
from src.core.validation.input_validator import InputValidator
from src.modules.inventory.service import InventoryService, ItemGranter
from src.modules.present.repository import UserPresentRepository
from src.modules.present.types import ClaimResult, ItemGrant, UpdatedResources
from src.modules.shared.base_service import BaseService
from src.modules.shared.exceptions import (
    AlreadyClaimedError,
    GrantError,
    InvalidItemTypeError,
    NotFoundError,
)
from src.modules.user.viewer_service import ViewerService, ViewerVerifier

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from src.database.models.present import UserPresent

# Status hint for an empty id batch (unprocessable, not malformed)
EMPTY_CLAIM_STATUS = 422


class PresentClaimService(BaseService):
    """Claims a batch of presents and grants their items atomically."""

    def __init__(
        self,
        present_repo: Optional[UserPresentRepository] = None,
        viewer_verifier: Optional[ViewerVerifier] = None,
        item_granter: Optional[ItemGranter] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(logger or get_logger(__name__))
        self._presents = present_repo or UserPresentRepository(self.log)
        self._viewers: ViewerVerifier = viewer_verifier or ViewerService()
        self._granter: ItemGranter = item_granter or InventoryService()

    async def claim(
        self,
        user_id: int,
        viewer_id: str,
        present_ids: Sequence[int],
        request_at: int,
    ) -> ClaimResult:
        """
        Claim `present_ids` for `user_id`.

        Args:
            user_id: Claiming user
            viewer_id: Viewer identity; must be bound to `user_id`
            present_ids: Requested ids; duplicates are collapsed
            request_at: Request time (epoch seconds) stamped on claimed rows

        Returns:
            ClaimResult with the claimed presents and the inventory delta

        Raises:
            ValidationError: Empty or invalid id batch (empty carries 422)
            ViewerNotFoundError / ViewerMismatchError: Viewer check failed
            UserNotFoundError / ItemNotFoundError: Grant target missing
            InvalidItemTypeError: A present carries an unknown item type
            AlreadyClaimedError: A record reached the grant step twice
            GrantError: Any other grant failure (retryable)
            StoreError: Store failure (retryable)
        """
        user_id = InputValidator.validate_id(user_id, "user_id")
        request_at = InputValidator.validate_integer(request_at, "request_at", min_value=0)
        ids = InputValidator.validate_id_list(
            present_ids,
            "present_ids",
            max_count=self.get_config("MAX_PRESENT_IDS_PER_CLAIM"),
            empty_status=EMPTY_CLAIM_STATUS,
        )

        self.log_operation(
            "claim_presents",
            user_id=user_id,
            requested_count=len(ids),
            request_at=request_at,
        )

        try:
            await self._viewers.verify_viewer(user_id, viewer_id)

            async with DatabaseService.get_session() as session:
                pending = await self._presents.find_pending_by_ids(session, user_id, ids)

        except SQLAlchemyError as exc:
            self.log_error("claim_presents", exc, user_id=user_id)
            raise StoreError("claim_presents.read", exc) from exc

        if not pending:
            self.log.info(
                "No requested presents pending",
                extra={"user_id": user_id, "requested_count": len(ids)},
            )
            return ClaimResult.empty(request_at)

        resources = UpdatedResources(now=request_at)

        try:
            async with DatabaseService.get_transaction() as tx_session:
                transitioned = await self._presents.mark_claimed(
                    tx_session, user_id, [present.id for present in pending], request_at
                )

                for present in pending:
                    if present.id not in transitioned:
                        self.log.info(
                            "Present claimed concurrently; skipping",
                            extra={"user_id": user_id, "present_id": present.id},
                        )
                        continue

                    if present.is_claimed:
                        raise AlreadyClaimedError(present.id)

                    present.mark_claimed(request_at)
                    grant = await self._grant(tx_session, user_id, present, request_at)

                    resources.apply_grant(grant)
                    resources.user_presents.append(present)

        except SQLAlchemyError as exc:
            self.log_error("claim_presents", exc, user_id=user_id)
            raise StoreError("claim_presents.write", exc) from exc

        self.log.info(
            "Presents claimed",
            extra={
                "user_id": user_id,
                "requested_count": len(ids),
                "claimed_count": len(resources.user_presents),
                "claimed_ids": [present.id for present in resources.user_presents],
            },
        )

        return ClaimResult(updated_resources=resources)

    async def _grant(
        self,
        session: AsyncSession,
        user_id: int,
        present: UserPresent,
        request_at: int,
    ) -> ItemGrant:
        try:
            return await self._granter.grant_item(
                session,
                user_id,
                present.item_id,
                present.item_type,
                present.amount,
                request_at,
            )
        except (NotFoundError, InvalidItemTypeError) as exc:
            self.log.warning(
                "Item grant rejected",
                extra={
                    "user_id": user_id,
                    "present_id": present.id,
                    "error_type": type(exc).__name__,
                    "error_code": exc.error_code,
                },
            )
            raise
        except Exception as exc:
            self.log_error(
                "grant_item",
                exc,
                user_id=user_id,
                present_id=present.id,
                item_id=present.item_id,
                item_type=present.item_type,
            )
            raise GrantError(present.id, exc) from exc
