"""
Input Validation Layer

Purpose
-------
Provide a centralized validation layer for caller-supplied values entering
the present engine: page indexes, user ids, present id batches and viewer
identities. Enforces type safety and bounds checking before any store access.

Responsibilities
----------------
- Validate and convert inputs to the correct types (int, str, list of ids)
- Enforce bounds checking for numerical inputs (min/max validation)
- Validate id batches: non-empty, bounded, duplicates collapsed in order
- Raise ValidationError with a field name and a readable reason

Non-Responsibilities
--------------------
- Business rule validation (service layer concern)
- Database constraints and persistence
- Authorization (the outer request layer)

Observability
-------------
Every validation failure is logged at debug level with:
  - field_name
  - raw_value (repr)
  - reason
"""

from __future__ import annotations

import re
from typing import Any, List, NoReturn, Optional

from src.core.logging.logger import get_logger
from src.modules.shared.exceptions import ValidationError

logger = get_logger(__name__)


def _raise_validation_error(
    field_name: str,
    value: Any,
    message: str,
    http_status: Optional[int] = None,
) -> NoReturn:
    """
    Centralized helper to log and raise a ValidationError.

    All validation failures go through this function to ensure consistent,
    structured logging and error construction.
    """
    logger.debug(
        "Input validation failed",
        extra={
            "field_name": field_name,
            "raw_value": repr(value),
            "reason": message,
        },
    )
    raise ValidationError(field_name, message, http_status=http_status)


class InputValidator:
    """
    Centralized input validation.

    All validation methods:
    - Are stateless and deterministic
    - Return validated values on success
    - Raise ValidationError on failure (never silently fail)
    """

    # =========================================================================
    # INTEGER VALIDATION
    # =========================================================================

    @staticmethod
    def validate_integer(
        value: Any,
        field_name: str,
        min_value: Optional[int] = None,
        max_value: Optional[int] = None,
    ) -> int:
        """
        Validate and convert value to integer with optional bounds checking.

        Accepts ints and decimal strings. Booleans and non-integral floats
        are rejected.

        Args:
            value: Input value to validate
            field_name: Name of field for error messages/logging
            min_value: Minimum allowed value (inclusive)
            max_value: Maximum allowed value (inclusive)

        Returns:
            Validated integer value

        Raises:
            ValidationError: If validation fails
        """
        if value is None:
            _raise_validation_error(field_name, value, "Value is required")

        if isinstance(value, bool):
            _raise_validation_error(field_name, value, "Must be a whole number")

        if isinstance(value, float) and not value.is_integer():
            _raise_validation_error(
                field_name,
                value,
                f"Must be a whole number, got '{value}'",
            )

        try:
            int_value = int(value)
        except (ValueError, TypeError):
            _raise_validation_error(
                field_name,
                value,
                f"Must be a whole number, got '{value}'",
            )

        if min_value is not None and int_value < min_value:
            _raise_validation_error(
                field_name,
                int_value,
                f"Must be at least {min_value}, got {int_value}",
            )

        if max_value is not None and int_value > max_value:
            _raise_validation_error(
                field_name,
                int_value,
                f"Cannot exceed {max_value}, got {int_value}",
            )

        return int_value

    @staticmethod
    def validate_positive_integer(
        value: Any,
        field_name: str,
        max_value: Optional[int] = None,
    ) -> int:
        """Validate that value is a strictly positive integer (>= 1)."""
        return InputValidator.validate_integer(
            value=value,
            field_name=field_name,
            min_value=1,
            max_value=max_value,
        )

    @staticmethod
    def validate_id(value: Any, field_name: str) -> int:
        """Validate a store-assigned identifier (positive integer)."""
        return InputValidator.validate_positive_integer(value, field_name)

    # =========================================================================
    # STRING VALIDATION
    # =========================================================================

    @staticmethod
    def validate_string(
        value: Any,
        field_name: str,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None,
        allowed_chars: Optional[str] = None,
        strip: bool = True,
    ) -> str:
        """
        Validate string input with optional length and character constraints.

        Args:
            value: String value to validate; must already be a str
            field_name: Name of field for error messages
            min_length: Minimum length after stripping whitespace
            max_length: Maximum length after stripping whitespace
            allowed_chars: Regex character class for allowed characters
                           (e.g., 'a-zA-Z0-9-')
            strip: If False, the value is used verbatim and surrounding
                whitespace is rejected instead of removed

        Returns:
            Stripped string (or the exact value when strip=False)

        Raises:
            ValidationError: If validation fails
        """
        if value is None:
            _raise_validation_error(field_name, value, "Value is required")

        if not isinstance(value, str):
            _raise_validation_error(field_name, value, "Must be a string")

        str_value = value.strip()
        if not strip:
            if str_value != value:
                _raise_validation_error(
                    field_name,
                    value,
                    "Must not have leading or trailing whitespace",
                )
            str_value = value

        if min_length is not None and len(str_value) < min_length:
            _raise_validation_error(
                field_name,
                str_value,
                f"Must be at least {min_length} characters",
            )

        if max_length is not None and len(str_value) > max_length:
            _raise_validation_error(
                field_name,
                str_value,
                f"Cannot exceed {max_length} characters",
            )

        if allowed_chars is not None:
            pattern = f"^[{allowed_chars}]+$"
            if not re.match(pattern, str_value):
                _raise_validation_error(
                    field_name,
                    str_value,
                    "Contains invalid characters",
                )

        return str_value

    # =========================================================================
    # BATCH VALIDATION
    # =========================================================================

    @staticmethod
    def validate_id_list(
        values: Any,
        field_name: str,
        max_count: Optional[int] = None,
        empty_status: Optional[int] = None,
    ) -> List[int]:
        """
        Validate a non-empty batch of ids.

        Duplicates are collapsed, keeping the first occurrence, so the
        returned list preserves request order.

        Args:
            values: List or tuple of id-like values
            field_name: Name of field for error messages
            max_count: Maximum number of ids allowed (before de-duplication)
            empty_status: Status hint carried by the error for an empty batch

        Returns:
            De-duplicated list of validated integer ids

        Raises:
            ValidationError: If the batch is empty, too large, or holds an
                invalid id
        """
        if not isinstance(values, (list, tuple)):
            _raise_validation_error(field_name, values, "Must be a list")

        if len(values) == 0:
            _raise_validation_error(
                field_name,
                values,
                "Must provide at least 1 item",
                http_status=empty_status,
            )

        if max_count is not None and len(values) > max_count:
            _raise_validation_error(
                field_name,
                len(values),
                f"Cannot provide more than {max_count} items",
            )

        validated_ids: List[int] = []
        seen: set[int] = set()

        for idx, raw_value in enumerate(values):
            try:
                validated_id = InputValidator.validate_id(
                    raw_value,
                    field_name=f"{field_name}[{idx}]",
                )
            except ValidationError as exc:
                # Re-raise with aggregated context on the parent field
                _raise_validation_error(
                    field_name,
                    raw_value,
                    f"Item {idx}: {exc.validation_message}",
                )

            if validated_id not in seen:
                seen.add(validated_id)
                validated_ids.append(validated_id)

        return validated_ids
