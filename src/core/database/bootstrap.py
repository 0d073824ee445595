"""
Database subsystem bootstrap.

Single entry point for bringing the store up and down around the present
engine. The outer request layer calls `initialize_database_subsystem()` once
during startup and `shutdown_database_subsystem()` on exit.

Bootstrap Sequence
------------------
1. DatabaseService initializes engine and session factory
2. Optional health check with DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS
3. Optional schema creation (development and tests only)

Usage Example
-------------
>>> await initialize_database_subsystem(verify_health=True)
>>> ...
>>> await shutdown_database_subsystem()
"""

from __future__ import annotations

import asyncio
from typing import Optional

from src.core.config.config import Config
from src.core.database.service import (
    DatabaseInitializationError,
    DatabaseService,
)
from src.core.logging.logger import get_logger

logger = get_logger(__name__)


async def initialize_database_subsystem(
    *,
    verify_health: bool = True,
    create_schema: bool = False,
    url: Optional[str] = None,
) -> None:
    """
    Initialize the database subsystem.

    Parameters
    ----------
    verify_health : bool, default=True
        Run `SELECT 1` after initialization, bounded by
        DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS.
    create_schema : bool, default=False
        Create all tables after initialization. Refused in production.
    url : str, optional
        Overrides Config.DATABASE_URL.

    Raises
    ------
    DatabaseInitializationError
        If initialization fails or the health check fails/times out.
    """
    logger.info(
        "Initializing database subsystem",
        extra={"verify_health": verify_health, "create_schema": create_schema},
    )

    try:
        await DatabaseService.initialize(url)
    except DatabaseInitializationError:
        raise
    except Exception as exc:
        logger.error(
            "Unexpected error during database initialization",
            extra={
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
            exc_info=True,
        )
        raise DatabaseInitializationError(
            f"Database initialization failed: {exc}"
        ) from exc

    if verify_health:
        health_timeout = float(
            getattr(Config, "DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS", 5)
        )

        try:
            healthy = await asyncio.wait_for(
                DatabaseService.health_check(),
                timeout=health_timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.error(
                "Database health check timed out during bootstrap",
                extra={"timeout_seconds": health_timeout},
            )
            raise DatabaseInitializationError(
                f"Database health check timed out after {health_timeout}s"
            ) from exc

        if not healthy:
            logger.error("Database health check failed during bootstrap")
            raise DatabaseInitializationError(
                "Database is unreachable or unhealthy after initialization"
            )

    if create_schema:
        if Config.is_production():
            raise DatabaseInitializationError(
                "Schema creation at bootstrap is disabled in production"
            )
        await DatabaseService.create_tables()

    logger.info("Database subsystem ready")


async def shutdown_database_subsystem() -> None:
    """
    Shutdown the database subsystem.

    Safe to call multiple times. Errors are logged, not raised.
    """
    logger.info("Shutting down database subsystem")

    try:
        await DatabaseService.shutdown()
        logger.info("Database subsystem shutdown complete")
    except Exception as exc:
        logger.error(
            "Error during database subsystem shutdown",
            extra={
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
            exc_info=True,
        )
