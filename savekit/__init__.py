"""
savekit

Versioned, cache-backed persistence for feature-based game code.

Quick Start:
    from savekit import (
        FeatureDescriptor, FileStorage, MigrationRegistry,
        VersionedStore, CachingRepository,
    )

    QUESTS = FeatureDescriptor("quests", ("active", "completed"), schema_version=1)

    store = VersionedStore.load_or_create(QUESTS, FileStorage("game/saves"))
    repo = CachingRepository(store)
    repo.add("q1", {"name": "Find the sword"})
    repo.persist()
"""

__version__ = "0.1.0"

from savekit.core import (
    PersistenceConfig,
    EventBus,
    Event,
    StoreEvent,
    FeatureEvent,
    EntityModel,
    PersistenceError,
    StorageUnavailable,
    CorruptRecord,
    MigrationError,
    MigrationGap,
    UnsupportedSchemaVersion,
    FeatureUnavailable,
    configure_logging,
)
from savekit.storage import (
    StorageBackend,
    FileStorage,
    SqliteStorage,
    MemoryStorage,
    create_storage,
    JsonCodec,
    StoreRecord,
)
from savekit.store import (
    FeatureDescriptor,
    MigrationRegistry,
    add_default_field,
    VersionedStore,
    CachingRepository,
)

__all__ = [
    # Core
    "PersistenceConfig",
    "EventBus",
    "Event",
    "StoreEvent",
    "FeatureEvent",
    "EntityModel",
    "configure_logging",
    # Errors
    "PersistenceError",
    "StorageUnavailable",
    "CorruptRecord",
    "MigrationError",
    "MigrationGap",
    "UnsupportedSchemaVersion",
    "FeatureUnavailable",
    # Storage
    "StorageBackend",
    "FileStorage",
    "SqliteStorage",
    "MemoryStorage",
    "create_storage",
    "JsonCodec",
    "StoreRecord",
    # Store
    "FeatureDescriptor",
    "MigrationRegistry",
    "add_default_field",
    "VersionedStore",
    "CachingRepository",
]
