"""
UserPresentAllReceivedHistory - receipt marker per (user, campaign).
Append-only; the unique constraint is the idempotency guard for distribution.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import Base, IdMixin, TimestampMixin


class UserPresentAllReceivedHistory(Base, IdMixin, TimestampMixin):
    """
    Records that a user has received a campaign's present.

    At most one row per (user_id, present_all_id), enforced by the database.
    """

    __tablename__ = "user_present_all_received_history"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "present_all_id",
            name="uq_user_present_all_received",
        ),
    )

    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    present_all_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    received_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<UserPresentAllReceivedHistory(user_id={self.user_id}, "
            f"present_all_id={self.present_all_id}, received_at={self.received_at})>"
        )
