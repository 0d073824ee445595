"""
Integration Tests for PresentListingService
===========================================

Test Coverage
-------------
- Ordering by created_at descending, id ascending
- Pagination completeness and the has-next flag
- Claimed presents and other users' presents are excluded
"""

import pytest

from src.core.config.config import Config
from src.modules.present.listing_service import PresentListingService
from tests.conftest import T0


@pytest.mark.integration
@pytest.mark.database
class TestListing:
    """Paginated pending presents."""

    async def test_ordering(self, factory):
        user = await factory.user()
        older = await factory.present(user.id, created_at=T0)
        newer_a = await factory.present(user.id, created_at=T0 + 10)
        newer_b = await factory.present(user.id, created_at=T0 + 10)

        page = await PresentListingService().list_presents(user.id, 1)

        assert [p.id for p in page.presents] == [newer_a.id, newer_b.id, older.id]
        assert page.has_next_page is False

    async def test_pages_cover_every_pending_present_once(self, factory, monkeypatch):
        # Arrange
        monkeypatch.setattr(Config, "PRESENT_COUNT_PER_PAGE", 3)
        user = await factory.user()
        created = [
            await factory.present(user.id, created_at=T0 + offset % 4)
            for offset in range(8)
        ]
        service = PresentListingService()

        # Act
        pages = [await service.list_presents(user.id, index) for index in (1, 2, 3)]

        # Assert
        seen = [p.id for page in pages for p in page.presents]
        assert sorted(seen) == sorted(p.id for p in created)
        assert len(seen) == len(set(seen))
        assert [page.has_next_page for page in pages] == [True, True, False]
        assert [len(page.presents) for page in pages] == [3, 3, 2]

        keys = [(-p.created_at, p.id) for page in pages for p in page.presents]
        assert keys == sorted(keys)

    async def test_exact_page_boundary_has_no_next(self, factory):
        user = await factory.user()
        for _ in range(4):
            await factory.present(user.id)

        page = await PresentListingService().list_presents(user.id, 2, page_size=2)

        assert len(page.presents) == 2
        assert page.has_next_page is False
        assert page.total_count == 4

    async def test_page_past_the_end_is_empty(self, factory):
        user = await factory.user()
        await factory.present(user.id)

        page = await PresentListingService().list_presents(user.id, 5)

        assert page.presents == []
        assert page.has_next_page is False

    async def test_claimed_and_foreign_presents_excluded(self, factory):
        user = await factory.user()
        other = await factory.user()
        pending = await factory.present(user.id)
        await factory.present(user.id, deleted_at=T0 + 1)
        await factory.present(other.id)

        page = await PresentListingService().list_presents(user.id, 1)

        assert [p.id for p in page.presents] == [pending.id]
        assert page.total_count == 1

    async def test_default_page_size_from_config(self, factory):
        user = await factory.user()

        page = await PresentListingService().list_presents(user.id, 1)

        assert page.page_size == Config.PRESENT_COUNT_PER_PAGE
