"""
Inventory service - items, equipment and gold.

Items, equipped items and the wallet are three collections of the
'inventory' store. Operations that touch several of them (equipping,
crafting exchanges) change the cache first and save once at the end.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING, Mapping, Optional

from features.inventory.models import EquipmentSlot, EquippedItem, ItemStack, Wallet
from features.service import FeatureService

if TYPE_CHECKING:
    from savekit.core.events import EventBus
    from savekit.store.repository import CachingRepository

logger = logging.getLogger(__name__)

ITEMS = "items"
EQUIPMENT = "equipment"
WALLET = "wallet"
WALLET_KEY = "main"


class InventoryEvent(Enum):
    """Inventory service events."""
    ITEM_ADDED = auto()
    ITEM_REMOVED = auto()
    ITEM_EQUIPPED = auto()
    ITEM_UNEQUIPPED = auto()
    GOLD_CHANGED = auto()
    EXCHANGED = auto()


class InventoryService(FeatureService):
    """
    Item container backed by the inventory repository.

    Each item id has a single stack capped at max_stack.
    """

    DEFAULT_MAX_STACK = 99

    def __init__(
        self,
        repository: CachingRepository,
        event_bus: Optional[EventBus] = None,
        default_max_stack: int = DEFAULT_MAX_STACK,
    ):
        super().__init__(repository, event_bus)
        self.default_max_stack = default_max_stack

    # Items

    def add_item(self, item_id: str, quantity: int = 1, max_stack: Optional[int] = None) -> int:
        """
        Add items to the inventory.

        Args:
            item_id: Item definition ID
            quantity: Amount to add
            max_stack: Stack limit for a new stack

        Returns:
            Amount that couldn't be added
        """
        _require_positive(quantity)
        stack = self._stack(item_id, max_stack)
        overflow = stack.add(quantity)
        added = quantity - overflow
        if added == 0:
            return overflow

        self.repository.add(item_id, stack, ITEMS)
        self._commit(InventoryEvent.ITEM_ADDED, item_id=item_id, quantity=added)
        return overflow

    def remove_item(self, item_id: str, quantity: int = 1) -> int:
        """
        Remove items from the inventory.

        Returns:
            Amount actually removed
        """
        _require_positive(quantity)
        stack = self.repository.fetch_by_id(item_id, ITEMS)
        if stack is None:
            return 0

        removed = stack.remove(quantity)
        self._store_stack(stack)
        self._commit(InventoryEvent.ITEM_REMOVED, item_id=item_id, quantity=removed)
        return removed

    def count_item(self, item_id: str) -> int:
        stack = self.repository.fetch_by_id(item_id, ITEMS)
        return stack.quantity if stack else 0

    def has_item(self, item_id: str, quantity: int = 1) -> bool:
        return self.count_item(item_id) >= quantity

    def get_items(self) -> list[ItemStack]:
        """All non-empty stacks."""
        return [s for s in self.repository.fetch_all(ITEMS) if not s.is_empty]

    # Equipment

    def equip(self, slot: EquipmentSlot, item_id: str) -> bool:
        """
        Move one item from the bag into a slot.

        Whatever was in the slot goes back into the bag.

        Returns:
            False if the item is not carried or the old item doesn't fit
        """
        stacks: dict[str, ItemStack] = {}
        new_stack = self._staged(stacks, item_id)
        if new_stack.remove(1) == 0:
            return False

        previous = self.repository.fetch_by_id(slot.value, EQUIPMENT)
        if previous is not None and self._staged(stacks, previous.item_id).add(1) > 0:
            return False

        for stack in stacks.values():
            self._store_stack(stack)
        self.repository.add(slot.value, EquippedItem(slot=slot, item_id=item_id), EQUIPMENT)
        self._commit(
            InventoryEvent.ITEM_EQUIPPED,
            slot=slot,
            item_id=item_id,
            previous=previous.item_id if previous else None,
        )
        return True

    def unequip(self, slot: EquipmentSlot) -> Optional[str]:
        """
        Empty a slot, returning the item to the bag.

        Returns:
            The unequipped item ID, or None if the slot was empty or
            the bag has no room for it
        """
        equipped = self.repository.fetch_by_id(slot.value, EQUIPMENT)
        if equipped is None:
            return None

        stack = self._stack(equipped.item_id)
        if stack.add(1) > 0:
            return None

        self.repository.add(stack.item_id, stack, ITEMS)
        self.repository.remove(slot.value, EQUIPMENT)
        self._commit(InventoryEvent.ITEM_UNEQUIPPED, slot=slot, item_id=equipped.item_id)
        return equipped.item_id

    def get_equipped(self, slot: EquipmentSlot) -> Optional[str]:
        equipped = self.repository.fetch_by_id(slot.value, EQUIPMENT)
        return equipped.item_id if equipped else None

    def get_all_equipped(self) -> dict[EquipmentSlot, str]:
        return {e.slot: e.item_id for e in self.repository.fetch_all(EQUIPMENT)}

    # Gold

    @property
    def gold(self) -> int:
        return self._wallet().gold

    def add_gold(self, amount: int) -> int:
        """Add (or with a negative amount, take) gold, never below zero."""
        wallet = self._wallet()
        wallet.gold = max(0, wallet.gold + amount)
        self.repository.add(WALLET_KEY, wallet, WALLET)
        self._commit(InventoryEvent.GOLD_CHANGED, gold=wallet.gold)
        return wallet.gold

    def spend_gold(self, amount: int) -> bool:
        """Spend gold if there is enough."""
        wallet = self._wallet()
        if wallet.gold < amount:
            return False
        wallet.gold -= amount
        self.repository.add(WALLET_KEY, wallet, WALLET)
        self._commit(InventoryEvent.GOLD_CHANGED, gold=wallet.gold)
        return True

    # Exchanges

    def exchange(
        self,
        consume: Mapping[str, int],
        produce: Mapping[str, int],
        gold_cost: int = 0,
    ) -> bool:
        """
        Remove and add several items (and pay gold) as one operation.

        Either every part applies and the inventory is saved once, or
        nothing changes.

        Returns:
            False if something to consume is missing, gold is short,
            or a produced item doesn't fit
        """
        for quantity in (*consume.values(), *produce.values()):
            _require_positive(quantity)
        if gold_cost < 0:
            raise ValueError(f"gold_cost must not be negative, got {gold_cost}")

        stacks: dict[str, ItemStack] = {}
        for item_id, quantity in consume.items():
            stack = self._staged(stacks, item_id)
            if stack.quantity < quantity:
                return False
            stack.remove(quantity)

        for item_id, quantity in produce.items():
            if self._staged(stacks, item_id).add(quantity) > 0:
                return False

        wallet = self._wallet()
        if wallet.gold < gold_cost:
            return False

        for stack in stacks.values():
            self._store_stack(stack)
        if gold_cost:
            wallet.gold -= gold_cost
            self.repository.add(WALLET_KEY, wallet, WALLET)

        self._commit(
            InventoryEvent.EXCHANGED,
            consumed=dict(consume),
            produced=dict(produce),
            gold_cost=gold_cost,
        )
        return True

    # Internals

    def _stack(self, item_id: str, max_stack: Optional[int] = None) -> ItemStack:
        stack = self.repository.fetch_by_id(item_id, ITEMS)
        if stack is None:
            stack = ItemStack(
                item_id=item_id,
                quantity=0,
                max_stack=max_stack or self.default_max_stack,
            )
        return stack

    def _staged(self, stacks: dict[str, ItemStack], item_id: str) -> ItemStack:
        if item_id not in stacks:
            stacks[item_id] = self._stack(item_id)
        return stacks[item_id]

    def _store_stack(self, stack: ItemStack) -> None:
        if stack.is_empty:
            self.repository.remove(stack.item_id, ITEMS)
        else:
            self.repository.add(stack.item_id, stack, ITEMS)

    def _wallet(self) -> Wallet:
        wallet = self.repository.fetch_by_id(WALLET_KEY, WALLET)
        return wallet if wallet is not None else Wallet()


def _require_positive(quantity: int) -> None:
    if quantity <= 0:
        raise ValueError(f"Quantity must be positive, got {quantity}")
