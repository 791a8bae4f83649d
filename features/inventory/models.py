"""
Inventory entities - item stacks, equipment, wallet.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from savekit.core.entity import EntityModel


class EquipmentSlot(str, Enum):
    """Equipment slot types."""
    WEAPON = "weapon"
    SHIELD = "shield"
    HEAD = "head"
    BODY = "body"
    HANDS = "hands"
    FEET = "feet"
    ACCESSORY_1 = "accessory_1"
    ACCESSORY_2 = "accessory_2"


class ItemStack(EntityModel):
    """
    All units of one item the player carries.

    Attributes:
        item_id: Reference to item definition
        quantity: Number of items in stack
        max_stack: Maximum stack size
    """
    item_id: str
    quantity: int = Field(default=1, ge=0)
    max_stack: int = Field(default=99, ge=1)

    @property
    def is_full(self) -> bool:
        return self.quantity >= self.max_stack

    @property
    def is_empty(self) -> bool:
        return self.quantity <= 0

    @property
    def space(self) -> int:
        return max(0, self.max_stack - self.quantity)

    def add(self, amount: int = 1) -> int:
        """
        Add to stack.

        Returns:
            Amount that couldn't be added (overflow)
        """
        to_add = min(amount, self.space)
        self.quantity += to_add
        return amount - to_add

    def remove(self, amount: int = 1) -> int:
        """
        Remove from stack.

        Returns:
            Actual amount removed
        """
        to_remove = min(amount, self.quantity)
        self.quantity -= to_remove
        return to_remove


class EquippedItem(EntityModel):
    """Item occupying an equipment slot."""
    slot: EquipmentSlot
    item_id: str


class Wallet(EntityModel):
    """Currency held by the player."""
    gold: int = Field(default=0, ge=0)
