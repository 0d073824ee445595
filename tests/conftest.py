"""
Pytest Configuration and Fixtures for the Present Engine Tests
===============================================================

Purpose
-------
Centralized test fixtures and configuration for the present engine test
suite. Provides reusable fixtures for the database, test data factories,
and mocks.

Responsibilities
----------------
- Test environment variables (set before any `src` import loads Config)
- File-backed SQLite database through DatabaseService for behavior tests
- Testcontainers PostgreSQL for integration tests (skipped without Docker)
- Factories for users, devices, item masters, campaigns and presents

Architecture Notes
------------------
- Unit tests use mocks (fast, isolated)
- Behavior tests run the real services against SQLite via aiosqlite
- PostgreSQL tests use testcontainers (real database)
- Every database fixture gives a clean schema per test
"""

from __future__ import annotations

import os
from typing import AsyncGenerator, Generator, Optional

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest
import pytest_asyncio
from sqlalchemy import select

from src.core.database.service import DatabaseService
from src.core.logging.logger import get_logger
from src.database.models import (
    ItemMaster,
    PresentAllMaster,
    User,
    UserDevice,
    UserPresent,
    UserPresentAllReceivedHistory,
)
from src.database.models.enums import ItemType

logger = get_logger(__name__)

# Request time used across tests (2023-11-14T22:13:20Z)
T0 = 1_700_000_000


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[type[DatabaseService], None]:
    """
    Initialize DatabaseService against a fresh SQLite file.

    Scope: function (new schema per test, clean slate)
    """
    url = f"sqlite+aiosqlite:///{tmp_path / 'presents.db'}"

    await DatabaseService.shutdown()
    await DatabaseService.initialize(url)
    await DatabaseService.create_tables()

    yield DatabaseService

    await DatabaseService.shutdown()


def start_postgres_container(image: str = "postgres:17-alpine"):
    """
    Build and start a PostgreSQL testcontainer, or skip the calling test.

    The constructor already talks to the Docker daemon, so both steps sit
    inside the same guard.
    """
    from testcontainers.postgres import PostgresContainer

    try:
        container = PostgresContainer(image=image, driver="asyncpg")
        container.start()
    except Exception as exc:
        pytest.skip(f"PostgreSQL testcontainer unavailable: {exc}")

    logger.info("PostgreSQL testcontainer started")
    return container


@pytest.fixture(scope="session")
def postgres_container() -> Generator[object, None, None]:
    """
    Start PostgreSQL testcontainer for integration tests.

    Scope: session (container persists across all tests)
    Skips dependent tests when Docker is unavailable.
    """
    container = start_postgres_container()

    yield container

    logger.info("Stopping PostgreSQL testcontainer...")
    container.stop()


@pytest_asyncio.fixture
async def postgres_database(postgres_container) -> AsyncGenerator[type[DatabaseService], None]:
    """DatabaseService bound to the PostgreSQL container with a clean schema."""
    url = postgres_container.get_connection_url()

    await DatabaseService.shutdown()
    await DatabaseService.initialize(url)
    await DatabaseService.drop_tables()
    await DatabaseService.create_tables()

    yield DatabaseService

    await DatabaseService.shutdown()


# ============================================================================
# FACTORIES
# ============================================================================


class PresentFactory:
    """Inserts test rows through committed transactions."""

    async def user(self, isu_coin: int = 0, at: int = T0) -> User:
        async with DatabaseService.get_transaction() as session:
            user = User(
                isu_coin=isu_coin,
                last_activated_at=at,
                registered_at=at,
                created_at=at,
                updated_at=at,
            )
            session.add(user)
            await session.flush()
            return user

    async def device(self, user_id: int, platform_id: str, at: int = T0) -> UserDevice:
        async with DatabaseService.get_transaction() as session:
            device = UserDevice(
                user_id=user_id,
                platform_id=platform_id,
                platform_type=1,
                created_at=at,
                updated_at=at,
            )
            session.add(device)
            await session.flush()
            return device

    async def item_master(
        self,
        item_type: ItemType,
        name: Optional[str] = None,
        amount_per_sec: Optional[int] = None,
    ) -> ItemMaster:
        async with DatabaseService.get_transaction() as session:
            master = ItemMaster(
                item_type=int(item_type),
                name=name or f"{item_type.name.lower()} item",
                amount_per_sec=amount_per_sec,
            )
            session.add(master)
            await session.flush()
            return master

    async def campaign(
        self,
        start_at: int,
        end_at: int,
        item_type: ItemType = ItemType.COIN,
        item_id: int = 1,
        amount: int = 100,
        message: str = "campaign reward",
    ) -> PresentAllMaster:
        async with DatabaseService.get_transaction() as session:
            campaign = PresentAllMaster(
                registered_start_at=start_at,
                registered_end_at=end_at,
                item_type=int(item_type),
                item_id=item_id,
                amount=amount,
                present_message=message,
                created_at=start_at,
            )
            session.add(campaign)
            await session.flush()
            return campaign

    async def present(
        self,
        user_id: int,
        item_type: ItemType = ItemType.COIN,
        item_id: int = 1,
        amount: int = 10,
        created_at: int = T0,
        deleted_at: Optional[int] = None,
    ) -> UserPresent:
        async with DatabaseService.get_transaction() as session:
            present = UserPresent(
                user_id=user_id,
                sent_at=created_at,
                item_type=int(item_type),
                item_id=item_id,
                amount=amount,
                present_message="test present",
                created_at=created_at,
                updated_at=created_at,
                deleted_at=deleted_at,
            )
            session.add(present)
            await session.flush()
            return present

    async def reload_present(self, present_id: int) -> UserPresent:
        async with DatabaseService.get_session() as session:
            result = await session.execute(
                select(UserPresent).where(UserPresent.id == present_id)
            )
            return result.scalar_one()

    async def reload_user(self, user_id: int) -> User:
        async with DatabaseService.get_session() as session:
            result = await session.execute(select(User).where(User.id == user_id))
            return result.scalar_one()

    async def all_presents(self, user_id: int) -> list[UserPresent]:
        async with DatabaseService.get_session() as session:
            result = await session.execute(
                select(UserPresent)
                .where(UserPresent.user_id == user_id)
                .order_by(UserPresent.id)
            )
            return list(result.scalars().all())

    async def all_markers(self, user_id: int) -> list[UserPresentAllReceivedHistory]:
        async with DatabaseService.get_session() as session:
            result = await session.execute(
                select(UserPresentAllReceivedHistory)
                .where(UserPresentAllReceivedHistory.user_id == user_id)
                .order_by(UserPresentAllReceivedHistory.present_all_id)
            )
            return list(result.scalars().all())


@pytest.fixture
def factory(database) -> PresentFactory:
    """Test data factory bound to the SQLite database fixture."""
    return PresentFactory()


@pytest.fixture
def pg_factory(postgres_database) -> PresentFactory:
    """Test data factory bound to the PostgreSQL database fixture."""
    return PresentFactory()


# ============================================================================
# MOCK FIXTURES (Unit Tests)
# ============================================================================


@pytest.fixture
def mock_viewer_verifier(mocker):
    """
    Mock ViewerVerifier that accepts every viewer.

    Scope: function
    Uses: Unit tests of the claim path
    """
    verifier = mocker.MagicMock()
    verifier.verify_viewer = mocker.AsyncMock()
    return verifier


@pytest.fixture
def mock_item_granter(mocker):
    """
    Mock ItemGranter.

    Scope: function
    Uses: Unit tests of the claim path
    """
    granter = mocker.MagicMock()
    granter.grant_item = mocker.AsyncMock()
    return granter
