import pytest

from features.inventory import (
    INVENTORY,
    EquipmentSlot,
    InventoryEvent,
    InventoryService,
    ItemStack,
)
from savekit.store.repository import CachingRepository
from savekit.store.versioned import VersionedStore


@pytest.fixture
def inventory_store(memory_storage):
    return VersionedStore.load_or_create(INVENTORY, memory_storage)


@pytest.fixture
def inventory(inventory_store, event_bus):
    return InventoryService(CachingRepository(inventory_store), event_bus)


def test_store_path(inventory_store, memory_storage):
    assert memory_storage.list_paths() == ["inventory_items"]


def test_add_and_remove_items(inventory, recorder):
    recorder.listen(InventoryEvent.ITEM_ADDED, InventoryEvent.ITEM_REMOVED)

    assert inventory.add_item("potion", 5) == 0
    assert inventory.count_item("potion") == 5
    assert inventory.has_item("potion", 5)
    assert not inventory.has_item("potion", 6)

    assert inventory.remove_item("potion", 2) == 2
    assert inventory.count_item("potion") == 3
    assert recorder.types == [InventoryEvent.ITEM_ADDED, InventoryEvent.ITEM_REMOVED]
    assert recorder.events[0]["quantity"] == 5


def test_remove_more_than_held(inventory, inventory_store):
    inventory.add_item("potion", 2)

    assert inventory.remove_item("potion", 10) == 2
    assert inventory.count_item("potion") == 0
    assert inventory.get_items() == []
    assert inventory_store.get_collection("items") == {}


def test_remove_missing_item(inventory):
    assert inventory.remove_item("elixir") == 0


def test_stack_overflow(inventory, recorder):
    assert inventory.add_item("arrow", 150) == 51
    assert inventory.count_item("arrow") == 99

    recorder.listen(InventoryEvent.ITEM_ADDED)
    assert inventory.add_item("arrow", 3) == 3
    assert recorder.events == []


def test_custom_max_stack(inventory):
    assert inventory.add_item("key", 3, max_stack=1) == 2
    assert inventory.get_items() == [ItemStack(item_id="key", quantity=1, max_stack=1)]


@pytest.mark.parametrize("quantity", [0, -1])
def test_non_positive_quantity(inventory, quantity):
    with pytest.raises(ValueError):
        inventory.add_item("potion", quantity)
    with pytest.raises(ValueError):
        inventory.remove_item("potion", quantity)


def test_items_persisted(inventory, memory_storage):
    inventory.add_item("potion", 4)

    store = VersionedStore.load_or_create(INVENTORY, memory_storage)
    assert store.get_collection("items") == {
        "potion": {"item_id": "potion", "quantity": 4, "max_stack": 99}
    }


def test_equip_and_unequip(inventory, recorder):
    inventory.add_item("sword", 1)
    inventory.add_item("axe", 1)
    recorder.listen(InventoryEvent.ITEM_EQUIPPED, InventoryEvent.ITEM_UNEQUIPPED)

    assert inventory.equip(EquipmentSlot.WEAPON, "sword")
    assert inventory.get_equipped(EquipmentSlot.WEAPON) == "sword"
    assert inventory.count_item("sword") == 0

    # Swapping returns the previous item to the bag
    assert inventory.equip(EquipmentSlot.WEAPON, "axe")
    assert inventory.count_item("sword") == 1
    assert inventory.count_item("axe") == 0
    assert recorder.events[-1]["previous"] == "sword"

    assert inventory.unequip(EquipmentSlot.WEAPON) == "axe"
    assert inventory.count_item("axe") == 1
    assert inventory.get_all_equipped() == {}
    assert recorder.types[-1] == InventoryEvent.ITEM_UNEQUIPPED


def test_equip_requires_item(inventory):
    assert not inventory.equip(EquipmentSlot.HEAD, "helmet")
    assert inventory.unequip(EquipmentSlot.HEAD) is None


def test_get_all_equipped(inventory):
    inventory.add_item("sword")
    inventory.add_item("buckler")
    inventory.equip(EquipmentSlot.WEAPON, "sword")
    inventory.equip(EquipmentSlot.SHIELD, "buckler")

    assert inventory.get_all_equipped() == {
        EquipmentSlot.WEAPON: "sword",
        EquipmentSlot.SHIELD: "buckler",
    }


def test_gold(inventory, recorder):
    recorder.listen(InventoryEvent.GOLD_CHANGED)
    assert inventory.gold == 0

    assert inventory.add_gold(100) == 100
    assert inventory.spend_gold(30)
    assert not inventory.spend_gold(500)
    assert inventory.gold == 70

    assert inventory.add_gold(-1000) == 0
    assert [e["gold"] for e in recorder.events] == [100, 70, 0]


def test_exchange(inventory, recorder):
    inventory.add_item("herb", 3)
    inventory.add_item("water", 1)
    inventory.add_gold(10)
    recorder.listen(InventoryEvent.EXCHANGED)

    assert inventory.exchange({"herb": 2, "water": 1}, {"potion": 1}, gold_cost=5)

    assert inventory.count_item("herb") == 1
    assert inventory.count_item("water") == 0
    assert inventory.count_item("potion") == 1
    assert inventory.gold == 5
    assert recorder.events[0]["consumed"] == {"herb": 2, "water": 1}


def test_exchange_is_all_or_nothing(inventory, inventory_store):
    inventory.add_item("herb", 3)
    inventory.add_item("potion", 99)
    before = inventory_store.snapshot()

    # Missing ingredient
    assert not inventory.exchange({"herb": 2, "water": 1}, {"tonic": 1})
    # Result doesn't fit
    assert not inventory.exchange({"herb": 1}, {"potion": 1})
    # Not enough gold
    assert not inventory.exchange({"herb": 1}, {"tonic": 1}, gold_cost=1)

    assert inventory.count_item("herb") == 3
    assert inventory.count_item("tonic") == 0
    assert inventory_store.snapshot() == before


def test_exchange_validates_arguments(inventory):
    with pytest.raises(ValueError):
        inventory.exchange({"herb": 0}, {"potion": 1})
    with pytest.raises(ValueError):
        inventory.exchange({"herb": 1}, {"potion": 1}, gold_cost=-1)


def test_item_stack_model():
    stack = ItemStack(item_id="arrow", quantity=95)

    assert stack.space == 4
    assert stack.add(10) == 6
    assert stack.is_full
    assert stack.remove(200) == 99
    assert stack.is_empty
