"""
UserDevice - binds a viewer identity (platform_id) to a user.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import Base, IdMixin, SoftDeleteMixin, TimestampMixin


class UserDevice(Base, IdMixin, TimestampMixin, SoftDeleteMixin):
    """
    A client device registered to a user.

    `platform_id` is the viewer identity sent with claim requests; it is
    unique across all users.
    """

    __tablename__ = "user_devices"
    __table_args__ = (
        UniqueConstraint("platform_id", name="uq_user_devices_platform_id"),
    )

    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    platform_id: Mapped[str] = mapped_column(String(255), nullable=False)
    platform_type: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return (
            f"<UserDevice(id={self.id}, user_id={self.user_id}, "
            f"platform_id='{self.platform_id}')>"
        )
