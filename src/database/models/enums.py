"""
Database Model Enums
====================

Lightweight enumerations for database models.

These enums provide type-safe constants for categorical columns across the
present schema. Services dispatch on them; models only store their values.
"""

from __future__ import annotations

import enum
from typing import Any


class ItemType(enum.IntEnum):
    """
    Closed set of grantable item kinds.

    Stored as a plain integer in `item_type` columns so rows written by other
    services remain readable.
    """

    COIN = 1
    CARD = 2
    ENHANCE = 3
    EXP = 4

    @classmethod
    def parse(cls, value: Any) -> "ItemType":
        """
        Convert a raw column value to an ItemType.

        Raises:
            ValueError: If the value is not a member (bool is rejected).
        """
        if isinstance(value, bool):
            raise ValueError(f"{value!r} is not a valid ItemType")
        return cls(value)


class PresentState(str, enum.Enum):
    """
    Lifecycle of a present.

    PENDING presents have no `deleted_at`; CLAIMED is terminal.
    """

    PENDING = "pending"
    CLAIMED = "claimed"
