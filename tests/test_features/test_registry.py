import pytest

from features.crafting import CraftingService
from features.inventory import InventoryService
from features.quests import QuestCatalog, QuestService, parse_quest
from features.registry import FeatureRegistry, FeatureSpec, default_registry
from savekit.core.config import PersistenceConfig
from savekit.core.errors import (
    FeatureUnavailable,
    MigrationGap,
    UnsupportedSchemaVersion,
)
from savekit.core.events import FeatureEvent
from savekit.storage.backends import FileStorage, MemoryStorage, SqliteStorage
from savekit.storage.codec import JsonCodec, StoreRecord
from savekit.store.descriptor import FeatureDescriptor
from savekit.store.migration import MigrationRegistry, add_default_field


def _seed(storage, feature, version, collections, path=None):
    record = StoreRecord(feature=feature, schema_version=version, collections=collections)
    storage.write(path or feature, JsonCodec().encode(record))


@pytest.fixture
def registry(memory_storage, event_bus):
    catalog = QuestCatalog([parse_quest({"id": "q1", "name": "Find the sword"})])
    return default_registry(event_bus=event_bus, catalog=catalog, storage=memory_storage)


def test_boot_all(registry, memory_storage, recorder):
    recorder.listen(FeatureEvent.BOOTED)

    services = registry.boot_all()

    assert isinstance(services["quests"], QuestService)
    assert isinstance(services["inventory"], InventoryService)
    assert isinstance(services["crafting"], CraftingService)
    assert services["crafting"].inventory is services["inventory"]
    assert registry.failures == {}
    assert memory_storage.list_paths() == ["crafting", "inventory_items", "quests"]
    assert [e["feature"] for e in recorder.events] == ["quests", "inventory", "crafting"]
    assert not any(e["degraded"] for e in recorder.events)


def test_get_boots_lazily(registry):
    quests = registry.get("quests")

    assert registry.get("quests") is quests
    assert registry.store("quests").name == "quests"
    with pytest.raises(KeyError):
        registry.get("weather")


def test_get_crafting_boots_inventory_first(registry):
    crafting = registry.get("crafting")
    assert crafting.inventory is registry.get("inventory")


def test_services_share_storage(registry):
    registry.get("quests").start_quest("q1")
    registry.get("inventory").add_item("potion", 2)

    catalog = QuestCatalog([parse_quest({"id": "q1", "name": "Find the sword"})])
    fresh = default_registry(catalog=catalog, storage=registry.storage)
    assert fresh.get("quests").is_quest_active("q1")
    assert fresh.get("inventory").count_item("potion") == 2


def test_corrupt_record_degrades_feature(memory_storage, event_bus, recorder):
    memory_storage.write("quests", b"not json at all")
    recorder.listen(FeatureEvent.DEGRADED, FeatureEvent.BOOTED)

    registry = default_registry(event_bus=event_bus, storage=memory_storage)
    registry.boot_all()

    assert registry.is_degraded("quests")
    assert not registry.is_degraded("inventory")
    assert not registry.store("quests").is_persistent
    assert registry.store("inventory").is_persistent
    assert recorder.types[0] == FeatureEvent.DEGRADED
    assert recorder.events[1]["degraded"] is True

    # The corrupt record is left as it was
    assert memory_storage.read("quests") == b"not json at all"


def test_unsupported_version_fails_feature_and_dependents(memory_storage, event_bus, recorder):
    _seed(memory_storage, "inventory", 9, {"items": {}, "equipment": {}, "wallet": {}},
          path="inventory_items")
    recorder.listen(FeatureEvent.FAILED)

    registry = default_registry(event_bus=event_bus, storage=memory_storage)
    services = registry.boot_all()

    assert set(services) == {"quests"}
    assert isinstance(registry.failures["inventory"], UnsupportedSchemaVersion)
    assert isinstance(registry.failures["crafting"], FeatureUnavailable)
    assert [e["feature"] for e in recorder.events] == ["inventory", "crafting"]

    with pytest.raises(FeatureUnavailable):
        registry.get("inventory")
    with pytest.raises(FeatureUnavailable):
        registry.get("crafting")


def test_migration_gap_halts_only_that_feature(memory_storage):
    notes = FeatureDescriptor(name="notes", collections=("all",), schema_version=3)
    migrations = MigrationRegistry("notes")
    migrations.register(1, add_default_field("pinned", False))
    _seed(memory_storage, "notes", 1, {"all": {"n1": {"text": "hi"}}})
    before = memory_storage.read("notes")

    registry = FeatureRegistry(storage=memory_storage)
    registry.register(FeatureSpec(notes, lambda repo, reg: repo, migrations))
    registry.register(FeatureSpec(
        FeatureDescriptor(name="tags", collections=("all",)),
        lambda repo, reg: repo,
    ))

    services = registry.boot_all()

    assert list(services) == ["tags"]
    assert isinstance(registry.failures["notes"], MigrationGap)
    assert memory_storage.read("notes") == before

    with pytest.raises(FeatureUnavailable) as exc_info:
        registry.boot("notes")
    assert isinstance(exc_info.value.cause, MigrationGap)


def test_duplicate_registration(registry):
    with pytest.raises(ValueError):
        registry.register(FeatureSpec(
            FeatureDescriptor(name="quests", collections=("active",)),
            lambda repo, reg: repo,
        ))


def test_storage_from_config(tmp_path):
    file_registry = default_registry(PersistenceConfig(save_root=tmp_path, backend="file"))
    assert isinstance(file_registry.storage, FileStorage)
    file_registry.boot_all()
    assert (tmp_path / "quests.json").exists()

    sqlite_registry = default_registry(PersistenceConfig(save_root=tmp_path / "db", backend="sqlite"))
    assert isinstance(sqlite_registry.storage, SqliteStorage)
    sqlite_registry.boot_all()
    assert sqlite_registry.storage.list_paths() == ["crafting", "inventory_items", "quests"]

    memory_registry = default_registry(PersistenceConfig(backend="memory"))
    assert isinstance(memory_registry.storage, MemoryStorage)


def test_invalid_entity_degrades_feature(memory_storage):
    _seed(memory_storage, "quests", 2, {"active": {"q1": {"name": "no id or status"}}, "completed": {}})

    registry = default_registry(storage=memory_storage)
    registry.get("quests")

    assert registry.is_degraded("quests")


def test_entity_validation_can_be_disabled(memory_storage):
    _seed(memory_storage, "crafting", 1, {"recipes": {"r1": {"unexpected": True}}, "known": {}})

    registry = default_registry(
        PersistenceConfig(backend="memory", validate_entities=False), storage=memory_storage
    )
    registry.get("inventory")
    registry.boot("crafting")

    assert not registry.is_degraded("crafting")
