"""
PresentAllMaster - campaign-wide reward definition.
Read-only to the present engine.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import Base, IdMixin


class PresentAllMaster(Base, IdMixin):
    """
    A reward every user receives once while the campaign window is open.

    The window `[registered_start_at, registered_end_at]` is inclusive on
    both ends and compared against the request time.
    """

    __tablename__ = "present_all_masters"
    __table_args__ = (
        Index(
            "ix_present_all_masters_window",
            "registered_start_at",
            "registered_end_at",
        ),
    )

    registered_start_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    registered_end_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    item_type: Mapped[int] = mapped_column(Integer, nullable=False)
    item_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    present_message: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<PresentAllMaster(id={self.id}, "
            f"window=[{self.registered_start_at}, {self.registered_end_at}], "
            f"item_type={self.item_type}, item_id={self.item_id})>"
        )
