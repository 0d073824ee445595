"""
Present domain ORM models.

Exports:
- PresentAllMaster
- UserPresent
- UserPresentAllReceivedHistory
"""

from .present_all_master import PresentAllMaster
from .present_all_received_history import UserPresentAllReceivedHistory
from .user_present import UserPresent

__all__ = [
    "PresentAllMaster",
    "UserPresent",
    "UserPresentAllReceivedHistory",
]
