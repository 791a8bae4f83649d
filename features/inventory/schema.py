"""
Inventory store layout.
"""

from __future__ import annotations

from savekit.store.descriptor import FeatureDescriptor
from savekit.store.migration import MigrationRegistry

from features.inventory.models import EquippedItem, ItemStack, Wallet

INVENTORY = FeatureDescriptor(
    name="inventory",
    path="inventory_items",
    collections=("items", "equipment", "wallet"),
    schema_version=1,
    entity_models={"items": ItemStack, "equipment": EquippedItem, "wallet": Wallet},
)

INVENTORY_MIGRATIONS = MigrationRegistry("inventory")
