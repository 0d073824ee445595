"""
Integration tests for InventoryService grants.
"""

import pytest
from sqlalchemy import select

from src.core.database.service import DatabaseService
from src.database.models import UserCard, UserItem
from src.database.models.enums import ItemType
from src.modules.inventory.service import InventoryService
from src.modules.shared.exceptions import (
    InvalidItemTypeError,
    ItemNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from tests.conftest import T0


async def _grant(user_id, item_id, item_type, amount, at=T0 + 1):
    async with DatabaseService.get_transaction() as session:
        return await InventoryService().grant_item(
            session, user_id, item_id, item_type, amount, at
        )


@pytest.mark.integration
@pytest.mark.database
class TestInventoryGrants:

    async def test_coin_increments_balance(self, factory):
        user = await factory.user(isu_coin=5)

        grant = await _grant(user.id, 1, ItemType.COIN, 20)

        assert grant.user.isu_coin == 25
        stored = await factory.reload_user(user.id)
        assert stored.isu_coin == 25
        assert stored.updated_at == T0 + 1

    async def test_coin_accepts_raw_type_value(self, factory):
        user = await factory.user()

        grant = await _grant(user.id, 1, 1, 3)

        assert grant.item_type is ItemType.COIN

    async def test_coin_for_missing_user(self, factory):
        with pytest.raises(UserNotFoundError):
            await _grant(9_999, 1, ItemType.COIN, 1)

    async def test_card_creates_level_one_instance(self, factory):
        user = await factory.user()
        master = await factory.item_master(ItemType.CARD, amount_per_sec=7)

        first = await _grant(user.id, master.id, ItemType.CARD, 1)
        await _grant(user.id, master.id, ItemType.CARD, 1)

        assert first.user_card.level == 1
        assert first.user_card.amount_per_sec == 7

        async with DatabaseService.get_session() as session:
            result = await session.execute(
                select(UserCard).where(UserCard.user_id == user.id)
            )
            cards = list(result.scalars().all())
        assert len(cards) == 2
        assert {c.card_id for c in cards} == {master.id}

    @pytest.mark.parametrize("item_type", [ItemType.ENHANCE, ItemType.EXP])
    async def test_stackable_items_accumulate(self, factory, item_type):
        user = await factory.user()
        master = await factory.item_master(item_type)

        await _grant(user.id, master.id, item_type, 4)
        grant = await _grant(user.id, master.id, item_type, 6, at=T0 + 2)

        assert grant.user_item.amount == 10
        async with DatabaseService.get_session() as session:
            result = await session.execute(
                select(UserItem).where(UserItem.user_id == user.id)
            )
            stacks = list(result.scalars().all())
        assert len(stacks) == 1
        assert stacks[0].amount == 10
        assert stacks[0].updated_at == T0 + 2

    async def test_master_of_another_type_is_not_found(self, factory):
        user = await factory.user()
        master = await factory.item_master(ItemType.EXP)

        with pytest.raises(ItemNotFoundError):
            await _grant(user.id, master.id, ItemType.ENHANCE, 1)

    @pytest.mark.parametrize("item_type", [0, 5, 99, "coin", True, None])
    async def test_invalid_item_type(self, factory, item_type):
        user = await factory.user()

        with pytest.raises(InvalidItemTypeError):
            await _grant(user.id, 1, item_type, 1)

    @pytest.mark.parametrize("amount", [0, -3])
    async def test_non_positive_amount(self, factory, amount):
        user = await factory.user()

        with pytest.raises(ValidationError):
            await _grant(user.id, 1, ItemType.COIN, amount)
