"""
Feature registry - boots feature stores and hands out services.

Each feature is booted independently:
- Storage failures put that feature in degraded mode: it runs on an
  empty in-memory store and nothing it does is written anywhere.
- Migration failures stop that feature from booting at all.
Neither affects other features, except features that require it.

Usage:
    registry = default_registry(PersistenceConfig(save_root="game/saves"))
    registry.boot_all()
    quests = registry.get("quests")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional

from savekit.core.config import PersistenceConfig
from savekit.core.errors import FeatureUnavailable, MigrationError, StorageUnavailable
from savekit.core.events import FeatureEvent
from savekit.storage.backends import StorageBackend, create_storage
from savekit.storage.codec import JsonCodec
from savekit.store.descriptor import FeatureDescriptor
from savekit.store.migration import MigrationRegistry
from savekit.store.repository import CachingRepository
from savekit.store.versioned import VersionedStore

if TYPE_CHECKING:
    from savekit.core.events import EventBus
    from features.quests.catalog import QuestCatalog

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[CachingRepository, "FeatureRegistry"], Any]


@dataclass(frozen=True)
class FeatureSpec:
    """
    How to build one feature.

    Attributes:
        descriptor: Store layout
        factory: Builds the service from its repository and the registry
        migrations: Schema upgrade steps
        requires: Features that must boot first
    """
    descriptor: FeatureDescriptor
    factory: ServiceFactory
    migrations: Optional[MigrationRegistry] = None
    requires: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.descriptor.name


class FeatureRegistry:
    """Service locator for feature services."""

    def __init__(
        self,
        config: Optional[PersistenceConfig] = None,
        event_bus: Optional[EventBus] = None,
        storage: Optional[StorageBackend] = None,
    ):
        self.config = config or PersistenceConfig()
        self.event_bus = event_bus
        self.storage = storage or create_storage(self.config)
        self.codec = JsonCodec(checksum=self.config.checksum, indent=self.config.indent)

        self._specs: dict[str, FeatureSpec] = {}
        self._services: dict[str, Any] = {}
        self._stores: dict[str, VersionedStore] = {}
        self._degraded: set[str] = set()
        self._failures: dict[str, BaseException] = {}

    def register(self, spec: FeatureSpec) -> None:
        """Register a feature. Names must be unique."""
        if spec.name in self._specs:
            raise ValueError(f"Feature '{spec.name}' is already registered")
        self._specs[spec.name] = spec

    def boot(self, name: str) -> Any:
        """
        Load the feature's store and build its service.

        Returns:
            The feature's service

        Raises:
            KeyError: Unknown feature
            FeatureUnavailable: The feature (or one it requires) failed
        """
        if name in self._services:
            return self._services[name]
        if name in self._failures:
            raise FeatureUnavailable(name, self._failures[name])

        spec = self._specs[name]
        for required in spec.requires:
            try:
                self.boot(required)
            except FeatureUnavailable as e:
                self._fail(name, e)
                raise FeatureUnavailable(name, e) from e

        store = self._open_store(spec)
        service = spec.factory(CachingRepository(store), self)
        self._services[name] = service
        self._stores[name] = store

        logger.info(
            f"Feature '{name}' booted"
            + (" (degraded, not persistent)" if name in self._degraded else "")
        )
        self._publish(FeatureEvent.BOOTED, name, degraded=name in self._degraded)
        return service

    def boot_all(self) -> dict[str, Any]:
        """
        Boot every registered feature.

        Features that fail are logged and skipped.

        Returns:
            Services of the features that booted
        """
        for name in self._specs:
            try:
                self.boot(name)
            except FeatureUnavailable:
                continue
        return dict(self._services)

    def get(self, name: str) -> Any:
        """Get a feature's service, booting it on first use."""
        if name in self._services:
            return self._services[name]
        if name not in self._specs:
            raise KeyError(f"Unknown feature '{name}'")
        return self.boot(name)

    def store(self, name: str) -> VersionedStore:
        """The booted store of a feature."""
        return self._stores[name]

    def is_degraded(self, name: str) -> bool:
        return name in self._degraded

    @property
    def failures(self) -> dict[str, BaseException]:
        return dict(self._failures)

    @property
    def names(self) -> list[str]:
        return list(self._specs)

    def _open_store(self, spec: FeatureSpec) -> VersionedStore:
        try:
            return VersionedStore.load_or_create(
                spec.descriptor,
                self.storage,
                migrations=spec.migrations,
                codec=self.codec,
                event_bus=self.event_bus,
                validate=self.config.validate_entities,
            )
        except StorageUnavailable as e:
            logger.error(
                f"Storage unavailable for '{spec.name}', running without persistence: {e}"
            )
            self._degraded.add(spec.name)
            self._publish(FeatureEvent.DEGRADED, spec.name, error=str(e))
            return VersionedStore.in_memory(
                spec.descriptor, spec.migrations, event_bus=self.event_bus
            )
        except MigrationError as e:
            self._fail(spec.name, e)
            raise FeatureUnavailable(spec.name, e) from e

    def _fail(self, name: str, error: BaseException) -> None:
        logger.critical(f"Feature '{name}' failed to boot: {error}")
        self._failures[name] = error
        self._publish(FeatureEvent.FAILED, name, error=str(error))

    def _publish(self, event: FeatureEvent, name: str, **data: Any) -> None:
        if self.event_bus:
            self.event_bus.publish(event, feature=name, **data)


def default_registry(
    config: Optional[PersistenceConfig] = None,
    event_bus: Optional[EventBus] = None,
    catalog: Optional[QuestCatalog] = None,
    storage: Optional[StorageBackend] = None,
) -> FeatureRegistry:
    """Registry with the quests, inventory and crafting features."""
    from features.crafting import CRAFTING, CRAFTING_MIGRATIONS, CraftingService
    from features.inventory import INVENTORY, INVENTORY_MIGRATIONS, InventoryService
    from features.quests import QUESTS, QUEST_MIGRATIONS, QuestService

    registry = FeatureRegistry(config, event_bus, storage)
    registry.register(FeatureSpec(
        QUESTS,
        lambda repo, reg: QuestService(repo, catalog, reg.event_bus),
        QUEST_MIGRATIONS,
    ))
    registry.register(FeatureSpec(
        INVENTORY,
        lambda repo, reg: InventoryService(repo, reg.event_bus),
        INVENTORY_MIGRATIONS,
    ))
    registry.register(FeatureSpec(
        CRAFTING,
        lambda repo, reg: CraftingService(repo, reg.get("inventory"), reg.event_bus),
        CRAFTING_MIGRATIONS,
        requires=("inventory",),
    ))
    return registry
