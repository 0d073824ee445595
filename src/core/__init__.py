"""
Core infrastructure layer for the present engine.

Purpose
-------
Provide a single, well-structured import surface for the infrastructure
primitives shared by every domain module:

- Configuration (Config)
- Logging (structured logging, logger factory, LogContext)
- Request-scoped clock (request_time_context, current_request_time)
- Infrastructure exceptions (PresentInfrastructureException hierarchy)

Non-Responsibilities
--------------------
- Business logic
- Database and validation re-exports; import those from
  `src.core.database` and `src.core.validation` directly so that loading
  this package never pulls in domain modules

Design Decisions
----------------
- This module is intentionally thin: no logic, no configuration, no I/O.
- Public API is explicit via __all__.
"""

from __future__ import annotations

from src.core.config import Config, Environment
from src.core.exceptions import (
    ClockUnavailableError,
    ConfigurationError,
    ErrorSeverity,
    PresentInfrastructureException,
    StoreError,
)
from src.core.logging import LogContext, get_logger, setup_logging, shutdown_logging
from src.core.request_time import current_request_time, request_time_context

__all__ = [
    # Configuration
    "Config",
    "Environment",
    # Logging
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "LogContext",
    # Request time
    "current_request_time",
    "request_time_context",
    # Infrastructure Exceptions
    "PresentInfrastructureException",
    "ConfigurationError",
    "StoreError",
    "ClockUnavailableError",
    "ErrorSeverity",
]
