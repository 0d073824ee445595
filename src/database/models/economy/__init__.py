"""
Economy domain ORM models.

Exports:
- ItemMaster
- UserCard
- UserItem
"""

from .item_master import ItemMaster
from .user_card import UserCard
from .user_item import UserItem

__all__ = [
    "ItemMaster",
    "UserCard",
    "UserItem",
]
