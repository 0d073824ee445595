"""
ViewerService - viewer identity verification
============================================

Handles:
- Resolving a viewer identity (device platform id) to its registered device
- Rejecting identities that are unknown or bound to another user

The claim path calls this before touching any present, so a request carrying
someone else's viewer identity never reaches the store writes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol

from src.core.database.service import DatabaseService
from src.core.logging.logger import get_logger
from src.core.validation.input_validator import InputValidator
from src.database.models.account.user_device import UserDevice
from src.modules.shared.base_repository import BaseRepository
from src.modules.shared.base_service import BaseService
from src.modules.shared.exceptions import ViewerMismatchError, ViewerNotFoundError

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession


class ViewerVerifier(Protocol):
    """Capability the claim path uses to authenticate the viewer."""

    async def verify_viewer(self, user_id: int, viewer_id: str) -> UserDevice:
        ...


class ViewerService(BaseService):
    """SQL-backed viewer verification over `user_devices`."""

    def __init__(self, logger: Optional[Logger] = None) -> None:
        super().__init__(logger or get_logger(__name__))
        self._device_repo: BaseRepository[UserDevice] = BaseRepository[UserDevice](
            model_class=UserDevice,
            logger=self.log,
        )

    async def verify_viewer(
        self,
        user_id: int,
        viewer_id: str,
        session: Optional[AsyncSession] = None,
    ) -> UserDevice:
        """
        Return the device bound to `viewer_id` if it belongs to `user_id`.

        Raises:
            ValidationError: Empty, padded or non-string viewer id (the id is
                matched verbatim)
            ViewerNotFoundError: No live device carries this viewer id
            ViewerMismatchError: The device is bound to a different user
        """
        viewer_id = InputValidator.validate_string(
            viewer_id, "viewer_id", min_length=1, max_length=255, strip=False
        )

        async def _do_verify(read_session: AsyncSession) -> UserDevice:
            device = await self._device_repo.find_one_where(
                read_session,
                UserDevice.platform_id == viewer_id,
                UserDevice.deleted_at.is_(None),
            )

            if device is None:
                self.log.info(
                    "Viewer not found",
                    extra={"user_id": user_id, "viewer_id": viewer_id},
                )
                raise ViewerNotFoundError(user_id, viewer_id)

            if device.user_id != user_id:
                self.log.warning(
                    "Viewer bound to another user",
                    extra={
                        "user_id": user_id,
                        "viewer_id": viewer_id,
                        "owner_user_id": device.user_id,
                    },
                )
                raise ViewerMismatchError(user_id, viewer_id)

            return device

        if session is not None:
            return await _do_verify(session)

        async with DatabaseService.get_session() as read_session:
            return await _do_verify(read_session)
