"""
ItemMaster - static definition of a grantable item.
Read-only to the present engine.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import Base, IdMixin


class ItemMaster(Base, IdMixin):
    """
    Item definition keyed by id; `item_type` holds an `ItemType` value.

    Card-specific columns are null for other item types.
    """

    __tablename__ = "item_masters"

    item_type: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    amount_per_sec: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_amount_per_sec: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    base_exp_per_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    gained_exp: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    shortening_min: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    def __repr__(self) -> str:
        return f"<ItemMaster(id={self.id}, item_type={self.item_type}, name='{self.name}')>"
