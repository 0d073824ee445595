"""
Present Engine Logging Infrastructure

Exports the structured logging subsystem, log context helpers,
and the setup/teardown interface.

This module provides:
- JSON or console logging behind a non-blocking queue pipeline
- ContextVar-based contextual logging (`LogContext`)
- Setup and teardown helpers for the global logging system
"""

from src.core.logging.logger import (
    LogContext,
    LoggerConfig,
    clear_log_context,
    get_log_context,
    get_logger,
    is_logging_initialized,
    set_log_context,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "is_logging_initialized",
    "get_logger",
    "get_log_context",
    "LogContext",
    "set_log_context",
    "clear_log_context",
    "LoggerConfig",
]
