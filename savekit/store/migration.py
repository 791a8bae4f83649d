"""
Migration registry - upgrades stored collections one schema version
at a time.

A migration registered for version N turns collections shaped for
version N into collections shaped for N + 1. Migrations are pure
functions of the collections mapping.

Usage:
    migrations = MigrationRegistry("quests")

    @migrations.migration(1)
    def add_main_quest_flag(collections):
        return add_default_field("is_main_quest", False)(collections)
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from savekit.core.errors import MigrationGap

logger = logging.getLogger(__name__)

Collections = dict[str, dict[Any, Any]]
MigrationFn = Callable[[Collections], Collections]


@dataclass(frozen=True)
class Migration:
    """One registered upgrade step from from_version to from_version + 1."""
    from_version: int
    fn: MigrationFn
    description: str = ""

    @property
    def to_version(self) -> int:
        return self.from_version + 1

    def apply(self, collections: Collections) -> Collections:
        result = self.fn(collections)
        if not isinstance(result, dict):
            raise TypeError(
                f"Migration v{self.from_version} returned {type(result).__name__}, "
                "expected a collections mapping"
            )
        return result


class MigrationRegistry:
    """Maps a source schema version to the step that upgrades it."""

    def __init__(self, feature: str = "", migrations: Iterable[Migration] = ()):
        self.feature = feature
        self._steps: dict[int, Migration] = {}
        for step in migrations:
            self.register(step.from_version, step.fn, step.description)

    def register(self, from_version: int, fn: MigrationFn, description: str = "") -> Migration:
        """
        Register the step that upgrades from_version to from_version + 1.

        Raises:
            ValueError: If from_version < 1 or already registered
        """
        if from_version < 1:
            raise ValueError(f"Migration versions start at 1, got {from_version}")
        if from_version in self._steps:
            raise ValueError(
                f"Migration from v{from_version} already registered for '{self.feature}'"
            )
        step = Migration(from_version, fn, description or (fn.__doc__ or "").strip())
        self._steps[from_version] = step
        return step

    def migration(self, from_version: int, description: str = "") -> Callable[[MigrationFn], MigrationFn]:
        """Decorator form of register()."""
        def decorator(fn: MigrationFn) -> MigrationFn:
            self.register(from_version, fn, description)
            return fn
        return decorator

    def get(self, version: int) -> Optional[Migration]:
        """Exact lookup by source version."""
        return self._steps.get(version)

    def missing_steps(self, from_version: int, to_version: int) -> list[int]:
        """Versions in [from_version, to_version) without a registered step."""
        return [v for v in range(from_version, to_version) if v not in self._steps]

    def plan(self, from_version: int, to_version: int) -> list[Migration]:
        """
        Steps needed to go from from_version to to_version, in order.

        Raises:
            MigrationGap: If any intermediate step is missing
        """
        missing = self.missing_steps(from_version, to_version)
        if missing:
            raise MigrationGap(self.feature, missing, from_version, to_version)
        return [self._steps[v] for v in range(from_version, to_version)]

    @property
    def versions(self) -> list[int]:
        return sorted(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __contains__(self, version: int) -> bool:
        return version in self._steps


# Common transforms

def add_default_field(field_name: str, value: Any, collections: Optional[Iterable[str]] = None) -> MigrationFn:
    """
    Build a migration that gives every entity a field with a default value.

    Entities that already carry the field keep their value. Only dict
    entities are touched.
    """
    only = set(collections) if collections is not None else None

    def migrate(data: Collections) -> Collections:
        result: Collections = {}
        for name, entities in data.items():
            if only is not None and name not in only:
                result[name] = entities
                continue
            result[name] = {
                key: ({**entity, field_name: copy.deepcopy(value)}
                      if isinstance(entity, dict) and field_name not in entity
                      else entity)
                for key, entity in entities.items()
            }
        return result

    migrate.__doc__ = f"Add '{field_name}' with default {value!r}"
    return migrate


def rename_field(old: str, new: str) -> MigrationFn:
    """Build a migration that renames a field on every dict entity."""

    def migrate(data: Collections) -> Collections:
        result: Collections = {}
        for name, entities in data.items():
            renamed = {}
            for key, entity in entities.items():
                if isinstance(entity, dict) and old in entity:
                    entity = {(new if k == old else k): v for k, v in entity.items()}
                renamed[key] = entity
            result[name] = renamed
        return result

    migrate.__doc__ = f"Rename field '{old}' to '{new}'"
    return migrate


def rename_collection(old: str, new: str) -> MigrationFn:
    """Build a migration that renames a collection."""

    def migrate(data: Collections) -> Collections:
        return {(new if name == old else name): entities for name, entities in data.items()}

    migrate.__doc__ = f"Rename collection '{old}' to '{new}'"
    return migrate
