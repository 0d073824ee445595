"""
Shared Module

Purpose
-------
Provides domain-level foundations for the present engine modules:
- Domain exceptions and error handling helpers
- Base service and repository patterns

Architecture
------------
- BaseService: Foundation for service classes (logging, config)
- BaseRepository: Type-safe database access patterns
- Domain exceptions: Caller-facing errors with status hints

Usage
-----
    from src.modules.shared import (
        BaseService,
        BaseRepository,
        ValidationError,
        get_http_status,
    )
"""

from __future__ import annotations

# Base patterns
from .base_repository import BaseRepository
from .base_service import BaseService

# Domain exceptions
from .exceptions import (
    AlreadyClaimedError,
    ErrorSeverity,
    GrantError,
    InvalidItemTypeError,
    ItemNotFoundError,
    NotFoundError,
    PresentDomainException,
    UserNotFoundError,
    ValidationError,
    ViewerMismatchError,
    ViewerNotFoundError,
    get_error_severity,
    get_http_status,
    is_transient_error,
    should_alert,
)

__all__ = [
    # Base patterns
    "BaseService",
    "BaseRepository",
    # Exceptions
    "PresentDomainException",
    "ErrorSeverity",
    "ValidationError",
    "InvalidItemTypeError",
    "NotFoundError",
    "ViewerNotFoundError",
    "UserNotFoundError",
    "ItemNotFoundError",
    "ViewerMismatchError",
    "AlreadyClaimedError",
    "GrantError",
    "is_transient_error",
    "get_error_severity",
    "should_alert",
    "get_http_status",
]
