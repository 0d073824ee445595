"""
Inventory module: item grants.
"""

from src.modules.inventory.service import InventoryService, ItemGranter

__all__ = ["InventoryService", "ItemGranter"]
