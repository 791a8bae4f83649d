"""
Inventory feature - items, equipment, gold.
"""

from features.inventory.models import ItemStack, EquippedItem, Wallet, EquipmentSlot
from features.inventory.schema import INVENTORY, INVENTORY_MIGRATIONS
from features.inventory.service import InventoryService, InventoryEvent

__all__ = [
    "ItemStack",
    "EquippedItem",
    "Wallet",
    "EquipmentSlot",
    "INVENTORY",
    "INVENTORY_MIGRATIONS",
    "InventoryService",
    "InventoryEvent",
]
