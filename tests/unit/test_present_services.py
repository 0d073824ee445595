"""
Unit tests for present service input handling.

Invalid input must be rejected before any store access, so DatabaseService
is patched and asserted untouched.
"""

import pytest

from src.core.database.service import DatabaseService
from src.modules.present.claim_service import PresentClaimService
from src.modules.present.distribution_service import PresentDistributionService
from src.modules.present.listing_service import PresentListingService
from src.modules.shared.exceptions import (
    ValidationError,
    ViewerMismatchError,
    ViewerNotFoundError,
)

T0 = 1_700_000_000


@pytest.fixture
def store(mocker):
    """Patch both session entry points of DatabaseService."""
    return {
        "session": mocker.patch.object(DatabaseService, "get_session"),
        "transaction": mocker.patch.object(DatabaseService, "get_transaction"),
    }


@pytest.mark.unit
class TestListingValidation:
    """Page index checks."""

    @pytest.mark.parametrize("page_index", [0, -1, "x", None])
    async def test_invalid_page_index_never_touches_store(self, store, page_index):
        service = PresentListingService()

        with pytest.raises(ValidationError) as exc_info:
            await service.list_presents(1, page_index)

        assert exc_info.value.field == "page_index"
        store["session"].assert_not_called()
        store["transaction"].assert_not_called()


@pytest.mark.unit
class TestClaimValidation:
    """Claim preconditions."""

    async def test_empty_ids_is_unprocessable(
        self, store, mock_viewer_verifier, mock_item_granter
    ):
        service = PresentClaimService(
            viewer_verifier=mock_viewer_verifier, item_granter=mock_item_granter
        )

        with pytest.raises(ValidationError) as exc_info:
            await service.claim(1, "device-a", [], T0)

        assert exc_info.value.http_status == 422
        mock_viewer_verifier.verify_viewer.assert_not_called()
        store["session"].assert_not_called()

    async def test_unknown_viewer_stops_before_reads(
        self, store, mock_viewer_verifier, mock_item_granter
    ):
        mock_viewer_verifier.verify_viewer.side_effect = ViewerNotFoundError(1, "ghost")
        service = PresentClaimService(
            viewer_verifier=mock_viewer_verifier, item_granter=mock_item_granter
        )

        with pytest.raises(ViewerNotFoundError):
            await service.claim(1, "ghost", [5], T0)

        store["session"].assert_not_called()
        mock_item_granter.grant_item.assert_not_called()

    async def test_mismatched_viewer_is_conflict(
        self, store, mock_viewer_verifier, mock_item_granter
    ):
        mock_viewer_verifier.verify_viewer.side_effect = ViewerMismatchError(1, "other")
        service = PresentClaimService(
            viewer_verifier=mock_viewer_verifier, item_granter=mock_item_granter
        )

        with pytest.raises(ViewerMismatchError) as exc_info:
            await service.claim(1, "other", [5], T0)

        assert exc_info.value.http_status == 409
        store["transaction"].assert_not_called()

    async def test_negative_request_time(self, store, mock_viewer_verifier, mock_item_granter):
        service = PresentClaimService(
            viewer_verifier=mock_viewer_verifier, item_granter=mock_item_granter
        )

        with pytest.raises(ValidationError):
            await service.claim(1, "device-a", [5], -1)

        mock_viewer_verifier.verify_viewer.assert_not_called()


@pytest.mark.unit
class TestDistributionValidation:
    """Distributor preconditions."""

    @pytest.mark.parametrize("user_id", [0, None, "abc"])
    async def test_invalid_user(self, store, user_id):
        service = PresentDistributionService()

        with pytest.raises(ValidationError):
            await service.distribute(user_id, T0)

        store["transaction"].assert_not_called()
