"""
Integration Tests for PresentClaimService
=========================================

Test Coverage
-------------
- Claiming transitions rows and grants each item exactly once
- Already-claimed and concurrently-claimed ids are skipped silently
- A failing grant rolls the whole batch back
- Grant error classification
- Cancellation inside the transaction rolls back
"""

import asyncio

import pytest
import pytest_asyncio

from src.database.models.enums import ItemType, PresentState
from src.modules.inventory.service import InventoryService
from src.modules.present.claim_service import PresentClaimService
from src.modules.present.repository import UserPresentRepository
from src.modules.present.types import ItemGrant
from src.modules.shared.exceptions import (
    AlreadyClaimedError,
    GrantError,
    InvalidItemTypeError,
    ItemNotFoundError,
    UserNotFoundError,
    ViewerMismatchError,
    ViewerNotFoundError,
)
from tests.conftest import T0

VIEWER = "device-a"


@pytest_asyncio.fixture
async def claimant(factory):
    user = await factory.user(isu_coin=0)
    await factory.device(user.id, VIEWER)
    return user


@pytest.mark.integration
@pytest.mark.database
class TestClaim:
    """Happy paths and skip semantics."""

    async def test_claims_and_grants_coins(self, factory, claimant):
        # Arrange
        first = await factory.present(claimant.id, ItemType.COIN, amount=10)
        second = await factory.present(claimant.id, ItemType.COIN, amount=15)

        # Act
        result = await PresentClaimService().claim(
            claimant.id, VIEWER, [first.id, second.id], T0 + 5
        )

        # Assert
        assert sorted(result.claimed_ids) == sorted([first.id, second.id])
        assert result.updated_resources.user.isu_coin == 25
        assert (await factory.reload_user(claimant.id)).isu_coin == 25

        for present_id in (first.id, second.id):
            stored = await factory.reload_present(present_id)
            assert stored.state is PresentState.CLAIMED
            assert stored.deleted_at == stored.updated_at == T0 + 5

        payload = result.to_dict()["updatedResources"]
        assert payload["now"] == T0 + 5
        assert {p["deletedAt"] for p in payload["userPresents"]} == {T0 + 5}

    async def test_mixed_claimed_and_pending(self, factory, claimant, mock_item_granter):
        # Arrange: 5 already claimed, 6 pending
        five = await factory.present(claimant.id, deleted_at=T0)
        six = await factory.present(claimant.id)
        mock_item_granter.grant_item.return_value = ItemGrant(ItemType.COIN, 1, 10)
        service = PresentClaimService(item_granter=mock_item_granter)

        # Act
        result = await service.claim(claimant.id, VIEWER, [five.id, six.id], T0 + 1)

        # Assert
        assert result.claimed_ids == [six.id]
        assert mock_item_granter.grant_item.await_count == 1
        assert (await factory.reload_present(five.id)).deleted_at == T0

    async def test_nothing_pending_is_empty_success(self, factory, claimant, mock_item_granter):
        claimed = await factory.present(claimant.id, deleted_at=T0)
        service = PresentClaimService(item_granter=mock_item_granter)

        result = await service.claim(claimant.id, VIEWER, [claimed.id, 999_999], T0 + 1)

        assert result.claimed_ids == []
        assert result.updated_resources.now == T0 + 1
        mock_item_granter.grant_item.assert_not_called()

    async def test_other_users_presents_are_ignored(self, factory, claimant, mock_item_granter):
        other = await factory.user()
        foreign = await factory.present(other.id)
        service = PresentClaimService(item_granter=mock_item_granter)

        result = await service.claim(claimant.id, VIEWER, [foreign.id], T0 + 1)

        assert result.claimed_ids == []
        assert (await factory.reload_present(foreign.id)).state is PresentState.PENDING

    async def test_duplicate_ids_grant_once(self, factory, claimant, mock_item_granter):
        present = await factory.present(claimant.id)
        mock_item_granter.grant_item.return_value = ItemGrant(ItemType.COIN, 1, 10)
        service = PresentClaimService(item_granter=mock_item_granter)

        result = await service.claim(claimant.id, VIEWER, [present.id, present.id], T0 + 1)

        assert result.claimed_ids == [present.id]
        assert mock_item_granter.grant_item.await_count == 1

    async def test_stale_second_claim_grants_nothing(self, factory, claimant, mocker):
        # Arrange: the second claim read its rows before the first committed
        present = await factory.present(claimant.id, ItemType.COIN, amount=10)
        granter = InventoryService()
        grant_spy = mocker.spy(granter, "grant_item")
        repo = UserPresentRepository()
        first = PresentClaimService(present_repo=repo, item_granter=granter)

        stale_rows = await factory.all_presents(claimant.id)
        await first.claim(claimant.id, VIEWER, [present.id], T0 + 1)

        stale_repo = UserPresentRepository()
        mocker.patch.object(stale_repo, "find_pending_by_ids", return_value=stale_rows)
        second = PresentClaimService(present_repo=stale_repo, item_granter=granter)

        # Act
        result = await second.claim(claimant.id, VIEWER, [present.id], T0 + 2)

        # Assert
        assert result.claimed_ids == []
        assert grant_spy.call_count == 1
        assert (await factory.reload_user(claimant.id)).isu_coin == 10
        assert (await factory.reload_present(present.id)).deleted_at == T0 + 1


@pytest.mark.integration
@pytest.mark.database
class TestClaimRollback:
    """All-or-nothing behavior."""

    async def test_third_of_five_failing_leaves_all_pending(
        self, factory, claimant, mock_item_granter
    ):
        # Arrange
        presents = [await factory.present(claimant.id) for _ in range(5)]
        mock_item_granter.grant_item.side_effect = [
            ItemGrant(ItemType.COIN, 1, 10),
            ItemGrant(ItemType.COIN, 1, 10),
            RuntimeError("inventory unavailable"),
        ]
        service = PresentClaimService(item_granter=mock_item_granter)

        # Act
        with pytest.raises(GrantError) as exc_info:
            await service.claim(claimant.id, VIEWER, [p.id for p in presents], T0 + 1)

        # Assert
        assert exc_info.value.is_retryable
        assert mock_item_granter.grant_item.await_count == 3
        for present in presents:
            assert (await factory.reload_present(present.id)).state is PresentState.PENDING

    async def test_real_grants_roll_back_with_claims(self, factory, claimant):
        coin = await factory.present(claimant.id, ItemType.COIN, amount=50)
        missing_card = await factory.present(claimant.id, ItemType.CARD, item_id=404)

        with pytest.raises(ItemNotFoundError):
            await PresentClaimService().claim(
                claimant.id, VIEWER, [coin.id, missing_card.id], T0 + 1
            )

        assert (await factory.reload_user(claimant.id)).isu_coin == 0
        assert (await factory.reload_present(coin.id)).state is PresentState.PENDING

    async def test_invalid_item_type(self, factory, claimant):
        bogus = await factory.present(claimant.id, item_type=99)

        with pytest.raises(InvalidItemTypeError) as exc_info:
            await PresentClaimService().claim(claimant.id, VIEWER, [bogus.id], T0 + 1)

        assert exc_info.value.http_status == 400
        assert (await factory.reload_present(bogus.id)).state is PresentState.PENDING

    async def test_missing_user_for_coin(self, factory):
        # Device exists, user row does not
        await factory.device(4242, "orphan-device")
        present = await factory.present(4242, ItemType.COIN)

        with pytest.raises(UserNotFoundError):
            await PresentClaimService().claim(4242, "orphan-device", [present.id], T0 + 1)

        assert (await factory.reload_present(present.id)).state is PresentState.PENDING

    async def test_in_memory_claimed_record_is_rejected(self, factory, claimant, mocker):
        present = await factory.present(claimant.id)
        stale = await factory.reload_present(present.id)
        stale.mark_claimed(T0)
        repo = UserPresentRepository()
        mocker.patch.object(repo, "find_pending_by_ids", return_value=[stale])

        with pytest.raises(AlreadyClaimedError):
            await PresentClaimService(present_repo=repo).claim(
                claimant.id, VIEWER, [present.id], T0 + 1
            )

        assert (await factory.reload_present(present.id)).state is PresentState.PENDING

    async def test_cancellation_rolls_back(self, factory, claimant, mock_item_granter):
        presents = [await factory.present(claimant.id) for _ in range(2)]
        started = asyncio.Event()

        async def _slow_grant(*args, **kwargs):
            started.set()
            await asyncio.sleep(10)

        mock_item_granter.grant_item.side_effect = _slow_grant
        service = PresentClaimService(item_granter=mock_item_granter)

        task = asyncio.create_task(
            service.claim(claimant.id, VIEWER, [p.id for p in presents], T0 + 1)
        )
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        for present in presents:
            assert (await factory.reload_present(present.id)).state is PresentState.PENDING


@pytest.mark.integration
@pytest.mark.database
class TestClaimViewer:
    """Viewer verification against user_devices."""

    async def test_unknown_viewer(self, factory, claimant):
        present = await factory.present(claimant.id)

        with pytest.raises(ViewerNotFoundError) as exc_info:
            await PresentClaimService().claim(claimant.id, "ghost", [present.id], T0)

        assert exc_info.value.http_status == 404

    async def test_viewer_of_another_user(self, factory, claimant):
        other = await factory.user()
        await factory.device(other.id, "device-b")
        present = await factory.present(claimant.id)

        with pytest.raises(ViewerMismatchError):
            await PresentClaimService().claim(claimant.id, "device-b", [present.id], T0)

        assert (await factory.reload_present(present.id)).state is PresentState.PENDING
