"""
ORM base and shared column mixins.

All timestamps are integer Unix epoch seconds taken from the request time
the caller supplies; nothing here reads the wall clock.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only auto-increments INTEGER PRIMARY KEY columns
IdType = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    """Declarative base shared by every model."""


class IdMixin:
    """Store-assigned surrogate primary key."""

    id: Mapped[int] = mapped_column(
        IdType,
        primary_key=True,
        autoincrement=True,
    )


class TimestampMixin:
    """created_at / updated_at epoch stamps."""

    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)


class SoftDeleteMixin:
    """Nullable deleted_at stamp; rows are never physically deleted."""

    deleted_at: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        nullable=True,
        default=None,
    )
