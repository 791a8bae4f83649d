"""
Versioned store - durable, versioned storage of one feature's
collections.

Provides:
- Load-or-create-default on startup
- Step-by-step schema migration on load
- Atomic full-record saves through a storage backend
- Entity validation after migration (jsonschema + pydantic models)
- Lifecycle events on an optional EventBus

Usage:
    store = VersionedStore.load_or_create(
        QUESTS, FileStorage("game/saves"), migrations=QUEST_MIGRATIONS
    )
    store.schema_version   # always QUESTS.schema_version after load
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional

import jsonschema
from pydantic import ValidationError

from savekit.core.errors import (
    CorruptRecord,
    MigrationError,
    MigrationGap,
    StorageUnavailable,
    UnsupportedSchemaVersion,
)
from savekit.core.events import StoreEvent
from savekit.storage.backends import MemoryStorage, StorageBackend
from savekit.storage.codec import JsonCodec, StoreRecord
from savekit.store.migration import MigrationRegistry

if TYPE_CHECKING:
    from savekit.core.events import EventBus
    from savekit.store.descriptor import FeatureDescriptor

logger = logging.getLogger(__name__)


class VersionedStore:
    """
    Owns one feature's collections plus their schema version.

    The constructor does no I/O; use load_or_create() at startup, or
    in_memory() for a store that is never written anywhere durable.
    """

    def __init__(
        self,
        descriptor: FeatureDescriptor,
        storage: StorageBackend,
        migrations: Optional[MigrationRegistry] = None,
        codec: Optional[JsonCodec] = None,
        event_bus: Optional[EventBus] = None,
        schema_version: Optional[int] = None,
        collections: Optional[Mapping[str, dict]] = None,
    ):
        self.descriptor = descriptor
        self.storage = storage
        self.migrations = migrations or MigrationRegistry(descriptor.name)
        self.codec = codec or JsonCodec()
        self.event_bus = event_bus

        version = descriptor.schema_version if schema_version is None else schema_version
        if version < 1:
            raise ValueError(f"schema_version must be >= 1, got {version}")
        self._schema_version = version

        if collections is None:
            self._collections: dict[str, dict] = descriptor.empty_collections()
        else:
            # Collections of an older schema are kept as stored until migrated
            self._collections = {name: dict(entities) for name, entities in collections.items()}
            if version == descriptor.schema_version:
                self._ensure_collections()

    # Construction

    @classmethod
    def load_or_create(
        cls,
        descriptor: FeatureDescriptor,
        storage: StorageBackend,
        migrations: Optional[MigrationRegistry] = None,
        codec: Optional[JsonCodec] = None,
        event_bus: Optional[EventBus] = None,
        validate: bool = True,
    ) -> VersionedStore:
        """
        Load the feature's store, or create and save an empty one.

        Args:
            descriptor: Feature configuration
            storage: Durable storage collaborator
            migrations: Registry of upgrade steps
            codec: Record codec (JsonCodec() by default)
            event_bus: Receives StoreEvent notifications
            validate: Check entities against the descriptor after migration

        Raises:
            StorageUnavailable: Storage unreadable/unwritable or record corrupt
            MigrationGap: A required migration step is not registered
            UnsupportedSchemaVersion: Record written by newer code
        """
        path = descriptor.path
        data = storage.read(path) if storage.exists(path) else None

        if data is None:
            store = cls(descriptor, storage, migrations, codec, event_bus)
            store.save()
            logger.info(
                f"Created store '{descriptor.name}' at schema v{store.schema_version}"
            )
            store._publish(StoreEvent.CREATED)
            return store

        record = (codec or JsonCodec()).decode(data, descriptor, path)
        if record.feature != descriptor.name:
            raise CorruptRecord(
                path, f"record belongs to feature '{record.feature}', not '{descriptor.name}'"
            )

        store = cls(
            descriptor,
            storage,
            migrations,
            codec,
            event_bus,
            schema_version=record.schema_version,
            collections=record.collections,
        )
        logger.info(
            f"Loaded store '{descriptor.name}' (schema v{record.schema_version}, "
            f"{store.entity_count} entities)"
        )
        store._publish(StoreEvent.LOADED)

        store.migrate_if_necessary()
        if validate:
            store.validate_entities()
        return store

    @classmethod
    def in_memory(
        cls,
        descriptor: FeatureDescriptor,
        migrations: Optional[MigrationRegistry] = None,
        event_bus: Optional[EventBus] = None,
    ) -> VersionedStore:
        """Empty store over MemoryStorage, for running without persistence."""
        return cls(descriptor, MemoryStorage(), migrations, event_bus=event_bus)

    # Migration

    def migrate_if_necessary(self) -> bool:
        """
        Upgrade collections to the descriptor's schema version.

        The whole chain is checked before any step runs, and steps run
        on a copy, so a failure leaves version and collections as they
        were. On success the store is saved exactly once.

        Returns:
            True if any migration ran

        Raises:
            MigrationGap: A step between stored and current version is missing
            UnsupportedSchemaVersion: Stored version is newer than current
            MigrationError: A migration step raised
            StorageUnavailable: The migrated store could not be saved
        """
        stored = self._schema_version
        target = self.descriptor.schema_version

        if stored > target:
            logger.critical(
                f"Store '{self.name}' is at schema v{stored}, code supports v{target}"
            )
            raise UnsupportedSchemaVersion(self.name, stored, target)
        if stored == target:
            return False

        try:
            steps = self.migrations.plan(stored, target)
        except MigrationGap as e:
            logger.critical(str(e))
            raise

        working = copy.deepcopy(self._collections)
        version = stored
        for step in steps:
            logger.info(
                f"Migrating '{self.name}' v{version} -> v{step.to_version}"
                + (f": {step.description}" if step.description else "")
            )
            try:
                working = step.apply(working)
            except Exception as e:
                logger.exception(f"Migration v{version} of '{self.name}' failed")
                raise MigrationError(
                    f"Migration v{version} -> v{step.to_version} of '{self.name}' failed: {e}"
                ) from e
            version = step.to_version

        self._collections = working
        self._ensure_collections()
        self._schema_version = version
        self.save()

        logger.info(f"Migrated store '{self.name}' from v{stored} to v{version}")
        self._publish(StoreEvent.MIGRATED, from_version=stored, to_version=version)
        return True

    def validate_entities(self) -> None:
        """
        Check every entity against the descriptor's schemas and models.

        Raises:
            CorruptRecord: On the first invalid entity
        """
        for name, entities in self._collections.items():
            schema = self.descriptor.entity_schemas.get(name)
            model = self.descriptor.model_for(name)
            if schema is None and model is None:
                continue
            for key, entity in entities.items():
                try:
                    if schema is not None:
                        jsonschema.validate(instance=entity, schema=schema)
                    if model is not None:
                        model.model_validate(entity)
                except jsonschema.ValidationError as e:
                    raise CorruptRecord(
                        self.path, f"entity '{key}' in '{name}' is invalid: {e.message}"
                    ) from e
                except ValidationError as e:
                    raise CorruptRecord(
                        self.path, f"entity '{key}' in '{name}' is invalid: {e}"
                    ) from e

    # Persistence

    def save(self) -> None:
        """
        Write version and all collections, replacing the previous record.

        Raises:
            StorageUnavailable: Encoding or I/O failed
        """
        record = StoreRecord(
            feature=self.name,
            schema_version=self._schema_version,
            collections=self._collections,
        )
        try:
            data = self.codec.encode(record)
        except (TypeError, ValueError) as e:
            self._publish(StoreEvent.SAVE_FAILED, error=str(e))
            raise StorageUnavailable(self.path, f"record is not serializable: {e}") from e

        try:
            self.storage.write(self.path, data)
        except StorageUnavailable as e:
            logger.error(f"Saving store '{self.name}' failed: {e.reason}")
            self._publish(StoreEvent.SAVE_FAILED, error=e.reason)
            raise
        except OSError as e:
            logger.error(f"Saving store '{self.name}' failed: {e}")
            self._publish(StoreEvent.SAVE_FAILED, error=str(e))
            raise StorageUnavailable(self.path, str(e)) from e

        logger.debug(f"Saved store '{self.name}' ({len(data)} bytes)")
        self._publish(StoreEvent.SAVED)

    def clear(self) -> None:
        """Empty every collection and save immediately."""
        self._collections = self.descriptor.empty_collections()
        self.save()
        logger.info(f"Cleared store '{self.name}'")
        self._publish(StoreEvent.CLEARED)

    # Collections access

    def snapshot(self) -> dict[str, dict]:
        """Deep copy of all collections."""
        return copy.deepcopy(self._collections)

    def update_collections(self, collections: Mapping[str, dict]) -> None:
        """
        Replace the named collections with deep copies of the given ones.

        Collections not mentioned are left alone. Nothing is saved.
        """
        for name, entities in collections.items():
            self._collections[name] = copy.deepcopy(dict(entities))

    def get_collection(self, name: str) -> dict:
        """Deep copy of one collection. Raises KeyError if unknown."""
        return copy.deepcopy(self._collections[name])

    def _ensure_collections(self) -> None:
        for name in self.descriptor.collections:
            self._collections.setdefault(name, {})

    def _publish(self, event: StoreEvent, **data: Any) -> None:
        if self.event_bus:
            self.event_bus.publish(
                event,
                feature=self.name,
                schema_version=self._schema_version,
                **data,
            )

    # Properties

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def path(self) -> str:
        return self.descriptor.path

    @property
    def schema_version(self) -> int:
        """Current schema version. Never decreases."""
        return self._schema_version

    @property
    def collection_names(self) -> list[str]:
        return list(self._collections)

    @property
    def entity_count(self) -> int:
        return sum(len(entities) for entities in self._collections.values())

    @property
    def is_persistent(self) -> bool:
        """False for stores backed by MemoryStorage."""
        return not isinstance(self.storage, MemoryStorage)

    def __repr__(self) -> str:
        return (
            f"VersionedStore({self.name!r}, v{self._schema_version}, "
            f"{self.entity_count} entities)"
        )
