"""
User - account row holding the coin balance.
Pure schema; no business logic.
"""

from __future__ import annotations

from sqlalchemy import BigInteger
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import Base, IdMixin, SoftDeleteMixin, TimestampMixin


class User(Base, IdMixin, TimestampMixin, SoftDeleteMixin):
    """Game account. `isu_coin` is the COIN item balance."""

    __tablename__ = "users"

    isu_coin: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    last_activated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    registered_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "isuCoin": self.isu_coin,
            "lastActivatedAt": self.last_activated_at,
            "registeredAt": self.registered_at,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "deletedAt": self.deleted_at,
        }

    def __repr__(self) -> str:
        return f"<User(id={self.id}, isu_coin={self.isu_coin})>"
