"""
PresentEngine - entry point for the outer request layer
=======================================================

Bundles distribution, listing and claiming behind three request-shaped
operations. Each call:
- binds a LogContext (user, viewer, operation) for every record it emits
- resolves the request time from the request clock unless one is passed
- logs domain failures once with their status hint, then re-raises

Usage
-----
>>> engine = PresentEngine()
>>> async with request_time_context(now):
...     await engine.login_presents(user_id)
...     page = await engine.list_presents(user_id, page_index=1)
...     result = await engine.receive_presents(user_id, viewer_id, [5, 6])
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence

from src.core.exceptions import PresentInfrastructureException
from src.core.logging.logger import LogContext, get_logger
from src.core.request_time import current_request_time
from src.modules.inventory.service import InventoryService, ItemGranter
from src.modules.present.claim_service import PresentClaimService
from src.modules.present.distribution_service import PresentDistributionService
from src.modules.present.listing_service import PresentListingService
from src.modules.present.repository import (
    PresentAllMasterRepository,
    PresentAllReceivedHistoryRepository,
    UserPresentRepository,
)
from src.modules.present.types import ClaimResult, PresentPage
from src.modules.shared.exceptions import PresentDomainException, get_http_status
from src.modules.user.viewer_service import ViewerService, ViewerVerifier

if TYPE_CHECKING:
    from logging import Logger

    from src.database.models.present import UserPresent

COMPONENT = "present"


class PresentEngine:
    """Wires repositories, services and capabilities for the present flows."""

    def __init__(
        self,
        viewer_verifier: Optional[ViewerVerifier] = None,
        item_granter: Optional[ItemGranter] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        self.log = logger or get_logger(__name__)

        present_repo = UserPresentRepository()
        self.distribution = PresentDistributionService(
            present_repo=present_repo,
            master_repo=PresentAllMasterRepository(),
            history_repo=PresentAllReceivedHistoryRepository(),
        )
        self.listing = PresentListingService(present_repo=present_repo)
        self.claims = PresentClaimService(
            present_repo=present_repo,
            viewer_verifier=viewer_verifier or ViewerService(),
            item_granter=item_granter or InventoryService(),
        )

    async def login_presents(
        self, user_id: int, request_at: Optional[int] = None
    ) -> List[UserPresent]:
        """Distribute due campaign presents; called before listing on login."""
        async with LogContext(user_id=user_id, component=COMPONENT, operation="login_presents"):
            try:
                at = request_at if request_at is not None else current_request_time()
                return await self.distribution.distribute(user_id, at)
            except (PresentDomainException, PresentInfrastructureException) as exc:
                self._log_failure("login_presents", exc)
                raise

    async def list_presents(
        self,
        user_id: int,
        page_index: int,
        page_size: Optional[int] = None,
    ) -> PresentPage:
        async with LogContext(user_id=user_id, component=COMPONENT, operation="list_presents"):
            try:
                return await self.listing.list_presents(user_id, page_index, page_size)
            except (PresentDomainException, PresentInfrastructureException) as exc:
                self._log_failure("list_presents", exc)
                raise

    async def receive_presents(
        self,
        user_id: int,
        viewer_id: str,
        present_ids: Sequence[int],
        request_at: Optional[int] = None,
    ) -> ClaimResult:
        """Claim presents and grant their items in one atomic unit."""
        async with LogContext(
            user_id=user_id,
            viewer_id=viewer_id,
            component=COMPONENT,
            operation="receive_presents",
        ):
            try:
                at = request_at if request_at is not None else current_request_time()
                return await self.claims.claim(user_id, viewer_id, present_ids, at)
            except (PresentDomainException, PresentInfrastructureException) as exc:
                self._log_failure("receive_presents", exc)
                raise

    def _log_failure(self, operation: str, exc: Exception) -> None:
        status = get_http_status(exc)
        log = self.log.error if status >= 500 else self.log.info
        log(
            f"{operation} failed with status {status}",
            extra={
                "operation": operation,
                "http_status": status,
                "error_type": type(exc).__name__,
                "error_code": getattr(exc, "error_code", None),
                "error_details": getattr(exc, "details", {}),
            },
        )
