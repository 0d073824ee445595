"""
Base Service Foundation

Purpose
-------
Provides the foundational class for all domain services of the present
engine. Services implement the business rules, own their transactions via
DatabaseService, and raise domain exceptions.

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Safe config access against the static `Config` class

What this class does NOT do:
- Manage database transactions (that's DatabaseService's job)
- Handle SQLAlchemy sessions directly

Usage
-----
    class PresentListingService(BaseService):
        def __init__(self, present_repo, logger=None):
            super().__init__(logger or get_logger(__name__))
            self._presents = present_repo

        async def list_presents(self, user_id: int, page_index: int):
            page_size = self.get_config("PRESENT_COUNT_PER_PAGE", 100)
            ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Type

from src.core.config.config import Config
from src.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from logging import Logger


class BaseService:
    """
    Base class for all domain services.

    Args:
        logger: Structured logger instance
        config: Configuration source exposing keys as attributes
            (defaults to the process-wide `Config`)
    """

    def __init__(self, logger: Logger, config: Optional[Type[Config]] = None) -> None:
        self._config = config or Config
        self.log = logger

    def get_config(
        self, key: str, default: Optional[Any] = None, required: bool = False
    ) -> Any:
        """
        Safely retrieve configuration value.

        Args:
            key: Configuration key to retrieve
            default: Default value if key not found
            required: If True, raise exception if key missing

        Returns:
            Configuration value

        Raises:
            ConfigurationError: If required=True and key is missing
        """
        value = getattr(self._config, key, default)
        if required and value is None:
            raise ConfigurationError(
                key, f"Required configuration key '{key}' is missing"
            )
        return value

    def log_operation(self, operation: str, **context: Any) -> None:
        """
        Log a service operation with structured context.

        Args:
            operation: Name of the operation being performed
            **context: Additional context data
        """
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def log_error(
        self,
        operation: str,
        error: Exception,
        **context: Any,
    ) -> None:
        """
        Log a service error with full context.

        Args:
            operation: Name of the operation that failed
            error: The exception that occurred
            **context: Additional context data
        """
        self.log.error(
            f"Service error during {operation}: {str(error)}",
            extra={
                "operation": operation,
                "error_type": type(error).__name__,
                "error_message": str(error),
                **context,
            },
        )
