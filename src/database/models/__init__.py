"""
Database Models Package
========================

SQLAlchemy ORM models for the present engine, organized by domain.

All models are schema-only:
- Use Mapped[] syntax with mapped_column()
- Inherit from the shared mixins (IdMixin, TimestampMixin, SoftDeleteMixin)
- Timestamps are integer epoch seconds supplied by the caller

Domain Organization:
--------------------
- present: Presents, campaign masters, receipt markers
- account: Users and their registered devices
- economy: Item masters and the inventories grants write into
- enums: Shared type-safe enumerations
"""

from src.core.database.base import Base

from .account import User, UserDevice
from .economy import ItemMaster, UserCard, UserItem
from .present import PresentAllMaster, UserPresent, UserPresentAllReceivedHistory

from . import enums

__all__ = [
    "Base",
    # Present
    "PresentAllMaster",
    "UserPresent",
    "UserPresentAllReceivedHistory",
    # Account
    "User",
    "UserDevice",
    # Economy
    "ItemMaster",
    "UserCard",
    "UserItem",
    # Enums module
    "enums",
]
