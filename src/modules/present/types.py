"""
Present Engine Result Types
===========================

Purpose
-------
Plain data containers returned by the present services and serialized by
the outer request layer.

Domain
------
- One page of pending presents plus the has-next flag
- The outcome of a single item grant
- The inventory delta and claimed presents of a batch claim

Design Decisions
----------------
- Mutable dataclasses hold ORM instances; serialization goes through
  `to_dict()` with the camelCase keys clients already consume
- Inventory deltas keep the latest state per card/item row, so granting the
  same item twice in one claim reports one row
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from src.database.models.account.user import User
from src.database.models.economy.user_card import UserCard
from src.database.models.economy.user_item import UserItem
from src.database.models.enums import ItemType
from src.database.models.present.user_present import UserPresent


@dataclass
class PresentPage:
    """One page of a user's pending presents."""

    presents: List[UserPresent]
    has_next_page: bool
    page_index: int = 1
    page_size: int = 0
    total_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "presents": [present.to_dict() for present in self.presents],
            "isNext": self.has_next_page,
        }


@dataclass
class ItemGrant:
    """
    Result of granting one item to one user.

    Exactly one of `user`, `user_card`, `user_item` is set, matching
    `item_type`.
    """

    item_type: ItemType
    item_id: int
    amount: int
    user: Optional[User] = None
    user_card: Optional[UserCard] = None
    user_item: Optional[UserItem] = None


@dataclass
class UpdatedResources:
    """Resources a claim changed, stamped with the request time."""

    now: int
    user: Optional[User] = None
    user_cards: List[UserCard] = field(default_factory=list)
    user_items: List[UserItem] = field(default_factory=list)
    user_presents: List[UserPresent] = field(default_factory=list)

    def apply_grant(self, grant: ItemGrant) -> None:
        """Fold one grant into the delta."""
        if grant.user is not None:
            self.user = grant.user
        if grant.user_card is not None:
            self.user_cards.append(grant.user_card)
        if grant.user_item is not None:
            for idx, existing in enumerate(self.user_items):
                if existing.id == grant.user_item.id:
                    self.user_items[idx] = grant.user_item
                    break
            else:
                self.user_items.append(grant.user_item)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "now": self.now,
            "user": self.user.to_dict() if self.user is not None else None,
            "userCards": [card.to_dict() for card in self.user_cards],
            "userItems": [item.to_dict() for item in self.user_items],
            "userPresents": [present.to_dict() for present in self.user_presents],
        }


@dataclass
class ClaimResult:
    """Outcome of a batch claim. Empty when nothing was still pending."""

    updated_resources: UpdatedResources

    @classmethod
    def empty(cls, request_at: int) -> "ClaimResult":
        return cls(updated_resources=UpdatedResources(now=request_at))

    @property
    def claimed_presents(self) -> List[UserPresent]:
        return self.updated_resources.user_presents

    @property
    def claimed_ids(self) -> List[int]:
        return [present.id for present in self.updated_resources.user_presents]

    def to_dict(self) -> Dict[str, Any]:
        return {"updatedResources": self.updated_resources.to_dict()}
