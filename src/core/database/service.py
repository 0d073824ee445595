"""
Database Service - Core Infrastructure Layer

Purpose
-------
Centralized async database engine and session management. Provides atomic
transactions and health checks for the relational store that owns all
present, campaign and receipt state.

Responsibilities
----------------
- Initialize and manage a single AsyncEngine instance with connection pooling
- Provide async context managers for read-only sessions and atomic transactions
- Enforce transaction discipline: automatic commit on success, rollback on
  any exception or task cancellation
- Configure statement timeouts for PostgreSQL connections
- Create / drop the schema for tests and local development
- Provide idempotent initialization with async lock protection

Non-Responsibilities
--------------------
- Domain logic and business rules
- Retrying failed operations (callers decide; every failure is rolled back)
- Database migrations

Architecture Notes
------------------
**Transaction Model**:
- `get_transaction()` is the primary interface for all state mutations
- Automatic commit on success, rollback on any exception
- Never manually call `session.commit()` inside service code

**Connection Pooling**:
- QueuePool-style pooling for production (pool_size / max_overflow)
- NullPool for testing environments and SQLite (no connection reuse)

**Configuration**:
All values sourced from Config with safe defaults:
- DATABASE_URL (required)
- DATABASE_POOL_SIZE, DATABASE_MAX_OVERFLOW
- DATABASE_POOL_RECYCLE, DATABASE_POOL_TIMEOUT
- DATABASE_STATEMENT_TIMEOUT_MS
- DATABASE_ECHO
- TESTING

Usage Example
-------------
Atomic write transaction (preferred):

>>> async with DatabaseService.get_transaction() as session:
>>>     session.add(UserPresent(...))
>>>     # Automatic commit on exit

Read-only access:

>>> async with DatabaseService.get_session() as session:
>>>     result = await session.execute(select(UserPresent).where(...))

Error Handling
--------------
**DatabaseInitializationError** - DATABASE_URL missing/invalid or engine
creation failed.

**DatabaseNotInitializedError** - session requested before initialize() or
after shutdown().

**Automatic Rollback** - any exception, including asyncio.CancelledError,
raised inside a `get_transaction()` block.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from src.core.config.config import Config
from src.core.database.base import Base
from src.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Exceptions
# ============================================================================


class DatabaseInitializationError(RuntimeError):
    """Raised when database engine initialization fails."""


class DatabaseNotInitializedError(RuntimeError):
    """Raised when database operations are attempted before initialization."""


# ============================================================================
# Configuration Snapshot
# ============================================================================


@dataclass(frozen=True)
class _DatabaseConfigSnapshot:
    """
    Immutable snapshot of database configuration.

    Prevents repeated Config lookups and provides a stable configuration
    view for the lifetime of the engine.
    """

    url: str
    echo: bool
    use_null_pool: bool
    pool_size: int
    max_overflow: int
    pool_recycle: int
    pool_timeout: int
    statement_timeout_ms: int

    @property
    def is_postgres(self) -> bool:
        return self.url.startswith(("postgresql://", "postgresql+asyncpg://"))

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def url_scheme(self) -> str:
        return self.url.split(":", 1)[0] if ":" in self.url else "unknown"


# ============================================================================
# DatabaseService - Core Infrastructure
# ============================================================================


class DatabaseService:
    """
    Centralized async database engine and session management.

    Public API
    ----------
    **Lifecycle**:
    - initialize() -> Initialize engine and session factory
    - shutdown() -> Dispose engine and cleanup resources
    - create_tables() / drop_tables() -> Schema management

    **Session Management**:
    - get_session() -> Read-only or manual transaction control
    - get_transaction() -> Atomic write transaction (preferred)

    **Utilities**:
    - health_check() -> Fast database reachability check
    - get_pool_metrics() -> Current connection pool statistics

    Thread Safety
    -------------
    All classmethods are safe for concurrent access from one event loop.
    Initialization is protected by an async lock.
    """

    _engine: Optional[AsyncEngine] = None
    _session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    _config_snapshot: Optional[_DatabaseConfigSnapshot] = None
    _init_lock: Optional[asyncio.Lock] = None

    # ========================================================================
    # Initialization & Shutdown
    # ========================================================================

    @classmethod
    def _get_init_lock(cls) -> asyncio.Lock:
        if cls._init_lock is None:
            cls._init_lock = asyncio.Lock()
        return cls._init_lock

    @classmethod
    def _build_config_snapshot(cls, url: Optional[str] = None) -> _DatabaseConfigSnapshot:
        """
        Build an immutable configuration snapshot from Config.

        Raises
        ------
        DatabaseInitializationError
            If DATABASE_URL is missing or invalid.
        """
        database_url = url or getattr(Config, "DATABASE_URL", None)
        if not database_url or not isinstance(database_url, str):
            logger.error("DATABASE_URL is not configured or invalid")
            raise DatabaseInitializationError(
                "DATABASE_URL must be configured as a non-empty string"
            )

        is_testing = bool(getattr(Config, "TESTING", False)) or Config.is_testing()

        snapshot = _DatabaseConfigSnapshot(
            url=database_url,
            echo=bool(getattr(Config, "DATABASE_ECHO", False)),
            use_null_pool=is_testing or database_url.startswith("sqlite"),
            pool_size=int(getattr(Config, "DATABASE_POOL_SIZE", 5)),
            max_overflow=int(getattr(Config, "DATABASE_MAX_OVERFLOW", 10)),
            pool_recycle=int(getattr(Config, "DATABASE_POOL_RECYCLE", 1800)),
            pool_timeout=int(getattr(Config, "DATABASE_POOL_TIMEOUT", 30)),
            statement_timeout_ms=int(
                getattr(Config, "DATABASE_STATEMENT_TIMEOUT_MS", 30_000)
            ),
        )

        logger.debug(
            "Database configuration snapshot created",
            extra={
                "url_scheme": snapshot.url_scheme,
                "null_pool": snapshot.use_null_pool,
                "pool_size": snapshot.pool_size,
                "max_overflow": snapshot.max_overflow,
                "statement_timeout_ms": snapshot.statement_timeout_ms,
                "is_testing": is_testing,
            },
        )

        return snapshot

    @classmethod
    async def initialize(cls, url: Optional[str] = None) -> None:
        """
        Initialize the database engine and session factory.

        Idempotent: returns immediately when already initialized.

        Parameters
        ----------
        url : str, optional
            Overrides Config.DATABASE_URL (used by tests).

        Raises
        ------
        DatabaseInitializationError
            If configuration is invalid or engine creation fails.
        """
        async with cls._get_init_lock():
            if cls._engine is not None:
                logger.debug("DatabaseService already initialized; skipping")
                return

            logger.info("Initializing DatabaseService")

            try:
                config = cls._build_config_snapshot(url)
                cls._config_snapshot = config

                engine_kwargs: dict[str, Any] = {"echo": config.echo}

                if config.use_null_pool:
                    engine_kwargs["poolclass"] = NullPool
                else:
                    engine_kwargs.update(
                        {
                            "pool_size": config.pool_size,
                            "max_overflow": config.max_overflow,
                            "pool_recycle": config.pool_recycle,
                            "pool_timeout": config.pool_timeout,
                            "pool_pre_ping": True,
                        }
                    )

                cls._engine = create_async_engine(config.url, **engine_kwargs)
                cls._session_factory = async_sessionmaker(
                    bind=cls._engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                )

                logger.info(
                    "DatabaseService initialized successfully",
                    extra={
                        "url_scheme": config.url_scheme,
                        "null_pool": config.use_null_pool,
                    },
                )

            except Exception as exc:
                cls._config_snapshot = None
                logger.error(
                    "DatabaseService initialization failed",
                    extra={
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "config_error": isinstance(exc, DatabaseInitializationError),
                    },
                    exc_info=True,
                )
                raise DatabaseInitializationError(
                    f"Database initialization failed: {exc}"
                ) from exc

    @classmethod
    async def shutdown(cls) -> None:
        """
        Shutdown the database engine and cleanup resources.

        Safe to call multiple times; no-op if already shut down.
        """
        async with cls._get_init_lock():
            if cls._engine is None:
                logger.debug("DatabaseService not initialized; nothing to shutdown")
                return

            logger.info("Shutting down DatabaseService")

            try:
                await cls._engine.dispose()
                logger.info("DatabaseService shutdown complete")

            except Exception as exc:
                logger.error(
                    "Error during DatabaseService shutdown",
                    extra={
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                    exc_info=True,
                )
                raise

            finally:
                cls._engine = None
                cls._session_factory = None
                cls._config_snapshot = None

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._engine is not None

    # ========================================================================
    # Schema Management
    # ========================================================================

    @classmethod
    async def create_tables(cls) -> None:
        """
        Create all tables registered on `Base.metadata`.

        Idempotent; existing tables are left untouched.
        """
        # Registers every model on Base.metadata
        import src.database.models  # noqa: F401

        cls._ensure_initialized()
        assert cls._engine is not None

        async with cls._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(
            "Database tables created",
            extra={"tables": sorted(Base.metadata.tables.keys())},
        )

    @classmethod
    async def drop_tables(cls) -> None:
        """
        Drop all tables. Refused in production.

        Raises
        ------
        RuntimeError
            If called in the production environment.
        """
        import src.database.models  # noqa: F401

        cls._ensure_initialized()
        assert cls._engine is not None

        if Config.is_production():
            raise RuntimeError("Cannot drop tables in production environment")

        async with cls._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.warning("Database tables dropped")

    # ========================================================================
    # Health Check
    # ========================================================================

    @classmethod
    async def health_check(cls) -> bool:
        """
        Perform a lightweight health check by executing `SELECT 1`.

        Returns False instead of raising on failure.
        """
        if cls._engine is None:
            logger.warning("Health check called on uninitialized DatabaseService")
            return False

        start = time.perf_counter()
        success = False

        try:
            async with cls._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            success = True
            return True

        except (OperationalError, DBAPIError) as exc:
            logger.warning(
                "Database health check failed",
                extra={
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            return False

        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            logger.debug(
                "Database health check completed",
                extra={"success": success, "duration_ms": duration_ms},
            )

    # ========================================================================
    # Connection Pool Metrics
    # ========================================================================

    @classmethod
    def get_pool_metrics(cls) -> dict[str, int]:
        """
        Get current connection pool metrics.

        Returns all zeros when the engine is not initialized or uses NullPool.
        """
        empty = {
            "pool_size": 0,
            "checked_out": 0,
            "checked_in": 0,
            "overflow": 0,
            "total_connections": 0,
        }

        if cls._engine is None or cls._config_snapshot is None:
            return empty

        pool = cls._engine.pool
        if cls._config_snapshot.use_null_pool or not hasattr(pool, "checkedout"):
            return empty

        checked_out = pool.checkedout()
        checked_in = pool.checkedin()
        overflow = max(0, pool.overflow())

        return {
            "pool_size": cls._config_snapshot.pool_size,
            "checked_out": checked_out,
            "checked_in": checked_in,
            "overflow": overflow,
            "total_connections": checked_out + checked_in,
        }

    # ========================================================================
    # Session & Transaction Context Managers
    # ========================================================================

    @classmethod
    def _ensure_initialized(cls) -> None:
        if cls._session_factory is None or cls._engine is None:
            logger.error("DatabaseService operation attempted before initialization")
            raise DatabaseNotInitializedError(
                "DatabaseService must be initialized before use. "
                "Call DatabaseService.initialize() during startup."
            )

    @classmethod
    def _get_config_snapshot(cls) -> _DatabaseConfigSnapshot:
        if cls._config_snapshot is None:
            raise DatabaseNotInitializedError("DatabaseService is not initialized")
        return cls._config_snapshot

    @classmethod
    async def _apply_statement_timeout(
        cls, session: AsyncSession, config: _DatabaseConfigSnapshot
    ) -> None:
        if config.is_postgres:
            await session.execute(
                text(f"SET LOCAL statement_timeout = {config.statement_timeout_ms}")
            )

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Create a database session without automatic commit.

        Use for read-only operations. The session is closed on exit; any
        implicit transaction it opened is rolled back by close().
        """
        cls._ensure_initialized()
        assert cls._session_factory is not None

        start = time.perf_counter()
        async with cls._session_factory() as session:
            config = cls._get_config_snapshot()

            try:
                await cls._apply_statement_timeout(session, config)
                logger.debug("Database session opened (read-only)")
                yield session

            finally:
                await session.close()
                duration_ms = (time.perf_counter() - start) * 1000.0
                logger.debug(
                    "Database session closed",
                    extra={"duration_ms": duration_ms},
                )

    @classmethod
    @asynccontextmanager
    async def get_transaction(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Create a database session wrapped in an atomic transaction.

        This is the **primary interface for all state mutations**.

        Behavior
        --------
        **On Success**: commits the transaction.

        **On Exception**: rolls back, logs with error context, re-raises the
        original exception.

        **On Cancellation**: rolls back before the CancelledError propagates,
        so a cancelled request never leaves partial writes behind.

        Usage Example
        -------------
        >>> async with DatabaseService.get_transaction() as session:
        >>>     await repo.mark_claimed(session, ids, request_at)
        >>>     # Automatic commit on exit

        Notes
        -----
        - Never manually call `session.commit()` or `session.rollback()`
        - Keep transactions short to avoid blocking other operations
        """
        cls._ensure_initialized()
        assert cls._session_factory is not None

        start = time.perf_counter()
        async with cls._session_factory() as session:
            config = cls._get_config_snapshot()

            try:
                await cls._apply_statement_timeout(session, config)

                logger.debug("Database transaction started")
                yield session

                await session.commit()
                duration_ms = (time.perf_counter() - start) * 1000.0
                logger.debug(
                    "Database transaction committed",
                    extra={"duration_ms": duration_ms},
                )

            except asyncio.CancelledError:
                await session.rollback()
                logger.warning(
                    "Transaction cancelled; rolled back",
                    extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
                )
                raise

            except IntegrityError as exc:
                await session.rollback()
                logger.warning(
                    "Constraint violation in transaction; rolled back",
                    extra={
                        "error": str(exc.orig),
                        "error_type": type(exc).__name__,
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                )
                raise

            except (OperationalError, DBAPIError) as exc:
                await session.rollback()
                logger.error(
                    f"{type(exc).__name__} in transaction; rolled back",
                    extra={
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                    exc_info=True,
                )
                raise

            except Exception as exc:
                await session.rollback()
                logger.warning(
                    "Error in transaction; rolled back",
                    extra={
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                )
                raise

            finally:
                await session.close()
                logger.debug("Database transaction session closed")
