"""
Account domain ORM models.

Exports:
- User
- UserDevice
"""

from .user import User
from .user_device import UserDevice

__all__ = [
    "User",
    "UserDevice",
]
