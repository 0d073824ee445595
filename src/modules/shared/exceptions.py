"""
Domain exceptions for the present engine.

Purpose
-------
Define the structured, domain-specific exception hierarchy for present
distribution and claiming. These exceptions are raised by services for
invalid input, missing entities, conflicts and grant failures. The outer
request layer translates them into responses using `http_status`.

Design Notes
------------
- All domain exceptions inherit from `PresentDomainException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict-like)
  - `severity`: `ErrorSeverity` value for logging/alerting
  - `is_retryable`: whether the operation can be retried
  - `error_code`: short, stable identifier for programmatic use
  - `http_status`: 400/404/409/422/500 equivalent for the request layer
- Categories:
  - InvalidArgument: `ValidationError`, `InvalidItemTypeError`
  - NotFound: `NotFoundError` and its subclasses
  - Conflict: `AlreadyClaimedError`, `ViewerMismatchError`
  - Internal (retryable): `GrantError`
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from src.core.exceptions import ErrorSeverity, PresentInfrastructureException


class PresentDomainException(Exception):
    """
    Base exception for all domain-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error (dict-like)
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling

    Example:
        >>> raise PresentDomainException(
        ...     "Claim failed",
        ...     {"reason": "unknown viewer"}
        ... )
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False
    HTTP_STATUS: int = 500

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
        http_status: Optional[int] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.is_retryable: bool = (
            is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        )
        self.error_code: str = error_code or self.__class__.__name__
        self.http_status: int = http_status or self.HTTP_STATUS
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
            "http_status": self.http_status,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}, "
            f"is_retryable={self.is_retryable!r}"
            ")"
        )


# ============================================================================
# InvalidArgument
# ============================================================================


class ValidationError(PresentDomainException):
    """
    Raised when caller input fails validation.

    Always raised before any store access; the caller recovers by
    correcting the input.

    Args:
        field: Name of the field that failed validation
        message: Explanation of why validation failed
        http_status: Override for the default 400 (an empty claim set is 422)
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False
    HTTP_STATUS = 400

    def __init__(
        self,
        field: str,
        message: str,
        http_status: Optional[int] = None,
    ) -> None:
        self.field = field
        self.validation_message = message
        super().__init__(
            f"Validation error for {field}: {message}",
            details={
                "field": field,
                "validation_message": message,
            },
            error_code=f"VALIDATION_{field.upper()}",
            http_status=http_status,
        )


class InvalidItemTypeError(PresentDomainException):
    """Raised when a present or grant names an item type outside `ItemType`."""

    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = False
    HTTP_STATUS = 400

    def __init__(self, item_type: Any) -> None:
        self.item_type = item_type
        super().__init__(
            f"Invalid item type: {item_type!r}",
            details={"item_type": item_type},
            error_code="INVALID_ITEM_TYPE",
        )


# ============================================================================
# NotFound
# ============================================================================


class NotFoundError(PresentDomainException):
    """
    Raised when a requested entity cannot be found.

    Args:
        resource_type: Type of resource (e.g., "User", "Item", "Viewer")
        identifier: Optional identifier for the missing resource
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False
    HTTP_STATUS = 404

    def __init__(self, resource_type: str, identifier: Optional[Any] = None) -> None:
        self.resource_type = resource_type
        self.identifier = identifier

        if identifier is not None:
            message = f"{resource_type} not found: {identifier}"
        else:
            message = f"{resource_type} not found"

        super().__init__(
            message,
            details={
                "resource_type": resource_type,
                "identifier": identifier,
            },
            error_code=f"{resource_type.upper()}_NOT_FOUND",
        )


class ViewerNotFoundError(NotFoundError):
    """Raised when the viewer identity has no device binding."""

    def __init__(self, user_id: int, viewer_id: str) -> None:
        self.user_id = user_id
        self.viewer_id = viewer_id
        super().__init__("Viewer", viewer_id)
        self.details["user_id"] = user_id


class UserNotFoundError(NotFoundError):
    """Raised by the item grant capability when the user does not exist."""

    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__("User", user_id)


class ItemNotFoundError(NotFoundError):
    """Raised when no item master matches the (item_id, item_type) pair."""

    def __init__(self, item_id: int, item_type: Any = None) -> None:
        self.item_id = item_id
        self.item_type = item_type
        super().__init__("Item", item_id)
        self.details["item_type"] = item_type


# ============================================================================
# Conflict
# ============================================================================


class ViewerMismatchError(PresentDomainException):
    """Raised when the viewer identity is bound to a different user."""

    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = False
    HTTP_STATUS = 409

    def __init__(self, user_id: int, viewer_id: str) -> None:
        self.user_id = user_id
        self.viewer_id = viewer_id
        super().__init__(
            f"Viewer {viewer_id} is not bound to user {user_id}",
            details={"user_id": user_id, "viewer_id": viewer_id},
            error_code="VIEWER_MISMATCH",
        )


class AlreadyClaimedError(PresentDomainException):
    """
    Raised when a present that is already claimed reaches the grant step.

    The store-side update predicate already excludes claimed rows, so this
    only fires when one call tries to process the same record twice.
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = False
    HTTP_STATUS = 409

    def __init__(self, present_id: int) -> None:
        self.present_id = present_id
        super().__init__(
            f"Present already claimed: {present_id}",
            details={"present_id": present_id},
            error_code="PRESENT_ALREADY_CLAIMED",
        )


# ============================================================================
# Internal
# ============================================================================


class GrantError(PresentDomainException):
    """
    Raised when the item grant capability fails for an unclassified reason.

    Args:
        present_id: The present whose grant failed
        original_error: The underlying exception
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = True
    HTTP_STATUS = 500

    def __init__(self, present_id: int, original_error: Exception) -> None:
        self.present_id = present_id
        self.original_error = original_error
        super().__init__(
            f"Item grant failed for present {present_id}: {original_error}",
            details={
                "present_id": present_id,
                "error": str(original_error),
                "error_type": type(original_error).__name__,
            },
            error_code="GRANT_FAILED",
        )


# Utility functions for exception handling patterns

_STRUCTURED = (PresentDomainException, PresentInfrastructureException)


def is_transient_error(exc: Exception) -> bool:
    """Check if an exception represents a transient error that can be retried."""
    if isinstance(exc, _STRUCTURED):
        return exc.is_retryable
    return False


def get_error_severity(exc: Exception) -> ErrorSeverity:
    """Get the severity level of an exception for logging."""
    if isinstance(exc, _STRUCTURED):
        return exc.severity
    return ErrorSeverity.ERROR


def should_alert(exc: Exception) -> bool:
    """Determine if an exception should trigger alerting (ERROR or CRITICAL)."""
    severity = get_error_severity(exc)
    return severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)


def get_http_status(exc: Exception) -> int:
    """Map any exception to the status the request layer should return."""
    if isinstance(exc, _STRUCTURED):
        return exc.http_status
    return 500
