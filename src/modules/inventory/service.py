"""
InventoryService - item grants into user inventories
====================================================

Handles:
- Coin grants onto the user balance
- Card grants (one new card instance per grant)
- Enhance / exp item grants (stack per user and item)

Dispatch is a closed table keyed by `ItemType`; an item type outside the
table is an invalid argument, never a silent no-op.

All grants run inside the caller's session so they commit or roll back
together with the claim that triggered them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional, Protocol

from src.core.logging.logger import get_logger
from src.core.validation.input_validator import InputValidator
from src.database.models.account.user import User
from src.database.models.economy.item_master import ItemMaster
from src.database.models.economy.user_card import UserCard
from src.database.models.economy.user_item import UserItem
from src.database.models.enums import ItemType
from src.modules.present.types import ItemGrant
from src.modules.shared.base_repository import BaseRepository
from src.modules.shared.base_service import BaseService
from src.modules.shared.exceptions import (
    InvalidItemTypeError,
    ItemNotFoundError,
    UserNotFoundError,
)

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession


class ItemGranter(Protocol):
    """Capability the claim path uses to convert a present into inventory."""

    async def grant_item(
        self,
        session: AsyncSession,
        user_id: int,
        item_id: int,
        item_type: Any,
        amount: int,
        request_at: int,
    ) -> ItemGrant:
        ...


_GrantHandler = Callable[["AsyncSession", int, int, int, int], Awaitable[ItemGrant]]


class InventoryService(BaseService):
    """SQL-backed item grants."""

    def __init__(self, logger: Optional[Logger] = None) -> None:
        super().__init__(logger or get_logger(__name__))
        self._user_repo: BaseRepository[User] = BaseRepository[User](User, self.log)
        self._master_repo: BaseRepository[ItemMaster] = BaseRepository[ItemMaster](
            ItemMaster, self.log
        )
        self._card_repo: BaseRepository[UserCard] = BaseRepository[UserCard](
            UserCard, self.log
        )
        self._item_repo: BaseRepository[UserItem] = BaseRepository[UserItem](
            UserItem, self.log
        )
        self._handlers: Dict[ItemType, _GrantHandler] = {
            ItemType.COIN: self._grant_coin,
            ItemType.CARD: self._grant_card,
            ItemType.ENHANCE: self._grant_stackable(ItemType.ENHANCE),
            ItemType.EXP: self._grant_stackable(ItemType.EXP),
        }

    async def grant_item(
        self,
        session: AsyncSession,
        user_id: int,
        item_id: int,
        item_type: Any,
        amount: int,
        request_at: int,
    ) -> ItemGrant:
        """
        Grant `amount` of an item to a user inside `session`.

        Raises:
            InvalidItemTypeError: `item_type` is not an ItemType value
            UserNotFoundError: COIN grant for a missing user
            ItemNotFoundError: No item master of that id and type
            ValidationError: Non-positive amount
        """
        try:
            parsed_type = ItemType.parse(item_type)
        except ValueError as exc:
            raise InvalidItemTypeError(item_type) from exc

        amount = InputValidator.validate_positive_integer(amount, "amount")

        handler = self._handlers.get(parsed_type)
        if handler is None:
            raise InvalidItemTypeError(item_type)

        grant = await handler(session, user_id, item_id, amount, request_at)

        self.log.info(
            "Item granted",
            extra={
                "user_id": user_id,
                "item_id": item_id,
                "item_type": parsed_type.name,
                "amount": amount,
            },
        )

        return grant

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    async def _grant_coin(
        self,
        session: AsyncSession,
        user_id: int,
        item_id: int,
        amount: int,
        request_at: int,
    ) -> ItemGrant:
        user = await self._user_repo.find_one_where(
            session,
            User.id == user_id,
            User.deleted_at.is_(None),
            for_update=True,
        )
        if user is None:
            raise UserNotFoundError(user_id)

        user.isu_coin += amount
        user.updated_at = request_at
        await session.flush()

        return ItemGrant(ItemType.COIN, item_id, amount, user=user)

    async def _grant_card(
        self,
        session: AsyncSession,
        user_id: int,
        item_id: int,
        amount: int,
        request_at: int,
    ) -> ItemGrant:
        master = await self._find_master(session, item_id, ItemType.CARD)
        if master.amount_per_sec is None:
            raise ValueError(f"card master {item_id} has no amount_per_sec")

        card = UserCard(
            user_id=user_id,
            card_id=master.id,
            amount_per_sec=master.amount_per_sec,
            level=1,
            total_exp=0,
            created_at=request_at,
            updated_at=request_at,
        )
        self._card_repo.add(session, card)
        await self._card_repo.flush(session)

        return ItemGrant(ItemType.CARD, item_id, amount, user_card=card)

    def _grant_stackable(self, item_type: ItemType) -> _GrantHandler:
        async def _grant(
            session: AsyncSession,
            user_id: int,
            item_id: int,
            amount: int,
            request_at: int,
        ) -> ItemGrant:
            master = await self._find_master(session, item_id, item_type)

            stack = await self._item_repo.find_one_where(
                session,
                UserItem.user_id == user_id,
                UserItem.item_id == master.id,
                for_update=True,
            )
            if stack is None:
                stack = UserItem(
                    user_id=user_id,
                    item_type=int(item_type),
                    item_id=master.id,
                    amount=amount,
                    created_at=request_at,
                    updated_at=request_at,
                )
                self._item_repo.add(session, stack)
            else:
                stack.amount += amount
                stack.updated_at = request_at
            await self._item_repo.flush(session)

            return ItemGrant(item_type, item_id, amount, user_item=stack)

        return _grant

    async def _find_master(
        self, session: AsyncSession, item_id: int, item_type: ItemType
    ) -> ItemMaster:
        master = await self._master_repo.find_one_where(
            session,
            ItemMaster.id == item_id,
            ItemMaster.item_type == int(item_type),
        )
        if master is None:
            raise ItemNotFoundError(item_id, item_type.name)
        return master
