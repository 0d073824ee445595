"""
UserItem - stackable inventory (enhance and exp items).
Pure schema; no business logic.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import Base, IdMixin, SoftDeleteMixin, TimestampMixin


class UserItem(Base, IdMixin, TimestampMixin, SoftDeleteMixin):
    """One stack per (user_id, item_id)."""

    __tablename__ = "user_items"
    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_user_items_user_item"),
    )

    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    item_type: Mapped[int] = mapped_column(Integer, nullable=False)
    item_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "itemType": self.item_type,
            "itemId": self.item_id,
            "amount": self.amount,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "deletedAt": self.deleted_at,
        }

    def __repr__(self) -> str:
        return (
            f"<UserItem(user_id={self.user_id}, item_id={self.item_id}, "
            f"amount={self.amount})>"
        )
