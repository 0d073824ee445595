"""
UserPresent - per-user pending reward record.
Pure schema; claim state is derived from `deleted_at`.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import BigInteger, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import Base, IdMixin, SoftDeleteMixin, TimestampMixin
from src.database.models.enums import PresentState


class UserPresent(Base, IdMixin, TimestampMixin, SoftDeleteMixin):
    """
    A reward queued for one user.

    `deleted_at` set means claimed; a claimed row is never claimed again and
    never physically removed.
    """

    __tablename__ = "user_presents"
    __table_args__ = (
        Index("ix_user_presents_user_pending", "user_id", "deleted_at", "created_at"),
    )

    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    sent_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    item_type: Mapped[int] = mapped_column(Integer, nullable=False)
    item_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    present_message: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    @property
    def state(self) -> PresentState:
        return PresentState.CLAIMED if self.deleted_at is not None else PresentState.PENDING

    @property
    def is_claimed(self) -> bool:
        return self.state is PresentState.CLAIMED

    @property
    def claimed_at(self) -> Optional[int]:
        return self.deleted_at

    def mark_claimed(self, request_at: int) -> None:
        """Apply the claim transition to this in-memory record."""
        self.updated_at = request_at
        self.deleted_at = request_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "sentAt": self.sent_at,
            "itemType": self.item_type,
            "itemId": self.item_id,
            "amount": self.amount,
            "presentMessage": self.present_message,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "deletedAt": self.deleted_at,
        }

    def __repr__(self) -> str:
        return (
            f"<UserPresent(id={self.id}, user_id={self.user_id}, "
            f"item_type={self.item_type}, item_id={self.item_id}, "
            f"amount={self.amount}, state={self.state.value})>"
        )
