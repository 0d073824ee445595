"""
PostgreSQL Concurrency Tests
============================

Runs the distribution and claim paths concurrently against a real
PostgreSQL instance (testcontainers). Skipped when Docker is unavailable.

Test Coverage
-------------
- Concurrent logins insert each campaign present exactly once
- Concurrent claims of the same present grant it exactly once
"""

import asyncio

import pytest

from src.database.models.enums import ItemType
from src.modules.present.claim_service import PresentClaimService
from src.modules.present.distribution_service import PresentDistributionService
from tests.conftest import T0


@pytest.mark.integration
@pytest.mark.database
class TestPostgresConcurrency:

    async def test_concurrent_distribution_inserts_once(self, pg_factory):
        # Arrange
        user = await pg_factory.user()
        campaign = await pg_factory.campaign(T0, T0 + 100)

        # Act
        results = await asyncio.gather(
            *(PresentDistributionService().distribute(user.id, T0 + 1) for _ in range(4))
        )

        # Assert
        assert sum(len(r) for r in results) == 1
        markers = await pg_factory.all_markers(user.id)
        assert [m.present_all_id for m in markers] == [campaign.id]
        assert len(await pg_factory.all_presents(user.id)) == 1

    async def test_concurrent_claims_grant_once(self, pg_factory):
        # Arrange
        user = await pg_factory.user(isu_coin=0)
        await pg_factory.device(user.id, "pg-viewer")
        present = await pg_factory.present(user.id, ItemType.COIN, amount=70)

        # Act
        results = await asyncio.gather(
            *(
                PresentClaimService().claim(user.id, "pg-viewer", [present.id], T0 + 1)
                for _ in range(3)
            )
        )

        # Assert
        assert sum(len(r.claimed_ids) for r in results) == 1
        assert (await pg_factory.reload_user(user.id)).isu_coin == 70
        assert (await pg_factory.reload_present(present.id)).deleted_at == T0 + 1
