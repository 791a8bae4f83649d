"""
Caching repository - in-memory read/write access to one store.

Reads populate the cache lazily from the VersionedStore. Writes only
touch the cache until persist() is called, so a service can make
several changes (remove from "active", add to "completed") and write
them to storage in one save.

There is no dirty tracking: changes that are never persisted are lost.

Usage:
    repo = CachingRepository(store)
    repo.add("q1", {"name": "Find the sword"})
    repo.fetch_by_id("q1")        # {"name": "Find the sword"}
    repo.persist()
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Generic, Hashable, Optional, TypeVar

from pydantic import BaseModel

if TYPE_CHECKING:
    from savekit.store.descriptor import FeatureDescriptor
    from savekit.store.versioned import VersionedStore

logger = logging.getLogger(__name__)

K = TypeVar('K', bound=Hashable)
V = TypeVar('V')


class CachingRepository(Generic[K, V]):
    """
    Read-through / write-back cache over exactly one VersionedStore.

    Every method takes an optional collection name; the descriptor's
    primary collection is used when it is omitted. Entities handed out
    are copies, so the cache only changes through add/remove.
    """

    def __init__(self, store: VersionedStore):
        self._store = store
        self._cache: dict[str, dict[K, V]] = {}
        self._cache_valid = False

    # Loading

    def load(self) -> None:
        """Replace the cache with a deep copy of the store's collections."""
        snapshot = self._store.snapshot()
        self._cache = {
            name: {
                key: self._hydrate(name, entity)
                for key, entity in snapshot.get(name, {}).items()
            }
            for name in self.descriptor.collections
        }
        self._cache_valid = True
        logger.debug(
            f"Loaded cache for '{self.descriptor.name}': "
            + ", ".join(f"{n}={len(c)}" for n, c in self._cache.items())
        )

    def invalidate(self) -> None:
        """Drop the cache. Unpersisted changes are discarded."""
        self._cache = {}
        self._cache_valid = False

    # Reads

    def fetch_by_id(self, key: K, collection: Optional[str] = None) -> Optional[V]:
        """
        Get one entity.

        Returns:
            A copy of the entity, or None if the key is absent
        """
        self._check_key(key)
        entity = self._bucket(collection, load=True).get(key)
        if entity is None:
            return None
        return copy.deepcopy(entity)

    def fetch_all(self, collection: Optional[str] = None) -> list[V]:
        """Snapshot list of a collection's entities."""
        return [copy.deepcopy(e) for e in self._bucket(collection, load=True).values()]

    def contains(self, key: K, collection: Optional[str] = None) -> bool:
        self._check_key(key)
        return key in self._bucket(collection, load=True)

    def keys(self, collection: Optional[str] = None) -> list[K]:
        return list(self._bucket(collection, load=True))

    def count(self, collection: Optional[str] = None) -> int:
        return len(self._bucket(collection, load=True))

    # Writes (cache only)

    def add(self, key: K, entity: V, collection: Optional[str] = None) -> None:
        """
        Insert or overwrite an entity in the cache.

        Before any load this seeds an empty cache instead of loading.

        Raises:
            TypeError: The key is not of the descriptor's key_type
            KeyError: Unknown collection
            ValidationError: A dict entity was rejected by the collection's
                entity model (pydantic)
        """
        self._check_key(key)
        self._bucket(collection, load=False)[key] = self._coerce(
            collection or self.descriptor.primary, copy.deepcopy(entity)
        )

    def remove(self, key: K, collection: Optional[str] = None) -> None:
        """Remove an entity from the cache. Absent keys are ignored."""
        self._check_key(key)
        self._bucket(collection, load=False).pop(key, None)

    # Persistence

    def persist(self) -> None:
        """
        Copy the cache into the store and save it.

        Raises:
            StorageUnavailable: The store could not be saved
        """
        if not self._cache_valid:
            self.load()

        self._store.update_collections({
            name: {key: self._dump(entity) for key, entity in entities.items()}
            for name, entities in self._cache.items()
        })
        self._store.save()
        logger.debug(f"Persisted cache for '{self.descriptor.name}'")

    # Internals

    def _bucket(self, collection: Optional[str], load: bool) -> dict[K, V]:
        name = collection or self.descriptor.primary
        if name not in self.descriptor.collections:
            raise KeyError(
                f"Unknown collection '{name}' for feature '{self.descriptor.name}'"
            )

        if not self._cache_valid:
            if load:
                self.load()
            else:
                self._cache = {n: {} for n in self.descriptor.collections}
                self._cache_valid = True

        return self._cache[name]

    def _check_key(self, key: object) -> None:
        # bool is an int subclass but would collide with 0 and 1
        key_type = self.descriptor.key_type
        if isinstance(key, bool) or not isinstance(key, key_type):
            raise TypeError(
                f"Key {key!r} is not {key_type.__name__} for feature '{self.descriptor.name}'"
            )

    def _hydrate(self, collection: str, payload: object) -> V:
        model = self.descriptor.model_for(collection)
        if model is None:
            return payload  # type: ignore[return-value]
        return model.model_validate(payload)  # type: ignore[return-value]

    def _coerce(self, collection: str, entity: V) -> V:
        model = self.descriptor.model_for(collection)
        if model is not None and isinstance(entity, dict):
            return model.model_validate(entity)  # type: ignore[return-value]
        return entity

    @staticmethod
    def _dump(entity: object) -> object:
        if isinstance(entity, BaseModel):
            return entity.model_dump(mode="json")
        return copy.deepcopy(entity)

    # Properties

    @property
    def store(self) -> VersionedStore:
        return self._store

    @property
    def descriptor(self) -> FeatureDescriptor:
        return self._store.descriptor

    @property
    def cache_valid(self) -> bool:
        return self._cache_valid
