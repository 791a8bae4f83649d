"""
Feature descriptor - the per-feature configuration of a store.

One generic VersionedStore / CachingRepository pair serves every
feature; what differs between features is captured here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel

from savekit.storage.backends import validate_path


@dataclass(frozen=True)
class FeatureDescriptor:
    """
    Describes one feature's persisted data.

    Attributes:
        name: Feature name ("quests", "inventory")
        collections: Named collections, the first is the primary one
        schema_version: Version the current code expects (>= 1)
        path: Storage address, defaults to name
        key_type: Type of entity keys, str or int
        entity_models: collection -> pydantic model for typed entities
        entity_schemas: collection -> JSON schema checked after migration
    """
    name: str
    collections: tuple[str, ...]
    schema_version: int = 1
    path: str = ""
    key_type: type = str
    entity_models: dict[str, type[BaseModel]] = field(default_factory=dict)
    entity_schemas: dict[str, dict[str, Any]] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            raise ValueError("Feature name must not be empty")
        if not self.path:
            object.__setattr__(self, "path", self.name)
        validate_path(self.path)

        collections = tuple(self.collections)
        object.__setattr__(self, "collections", collections)
        if not collections:
            raise ValueError(f"Feature '{self.name}' declares no collections")
        if len(set(collections)) != len(collections):
            raise ValueError(f"Feature '{self.name}' declares duplicate collections")

        if isinstance(self.schema_version, bool) or not isinstance(self.schema_version, int):
            raise ValueError("schema_version must be an integer")
        if self.schema_version < 1:
            raise ValueError(f"schema_version must be >= 1, got {self.schema_version}")

        if self.key_type not in (str, int):
            raise ValueError(f"key_type must be str or int, got {self.key_type!r}")

        for mapping_name in ("entity_models", "entity_schemas"):
            unknown = set(getattr(self, mapping_name)) - set(collections)
            if unknown:
                raise ValueError(
                    f"{mapping_name} references unknown collections: {sorted(unknown)}"
                )

    @property
    def primary(self) -> str:
        """Collection used when callers don't name one."""
        return self.collections[0]

    def model_for(self, collection: str) -> Optional[type[BaseModel]]:
        return self.entity_models.get(collection)

    def empty_collections(self) -> dict[str, dict]:
        """Fresh, empty mapping for every collection."""
        return {name: {} for name in self.collections}
