"""
Present module: campaign distribution, paginated listing and batch claim.

Services live in their own modules; import `PresentEngine` from
`src.modules.present.engine` for the wired entry point.
"""

from src.modules.present.types import ClaimResult, ItemGrant, PresentPage, UpdatedResources

__all__ = [
    "ClaimResult",
    "ItemGrant",
    "PresentPage",
    "UpdatedResources",
]
