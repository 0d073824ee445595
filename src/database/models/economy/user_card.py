"""
UserCard - one owned card instance.
Pure schema; no business logic.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import Base, IdMixin, SoftDeleteMixin, TimestampMixin


class UserCard(Base, IdMixin, TimestampMixin, SoftDeleteMixin):
    """
    A card owned by a user. Each grant of a CARD item creates a new row
    starting at level 1.
    """

    __tablename__ = "user_cards"

    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    card_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    amount_per_sec: Mapped[int] = mapped_column(Integer, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_exp: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "cardId": self.card_id,
            "amountPerSec": self.amount_per_sec,
            "level": self.level,
            "totalExp": self.total_exp,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "deletedAt": self.deleted_at,
        }

    def __repr__(self) -> str:
        return (
            f"<UserCard(id={self.id}, user_id={self.user_id}, "
            f"card_id={self.card_id}, level={self.level})>"
        )
