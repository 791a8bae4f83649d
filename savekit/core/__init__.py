"""
Core persistence module.

Exports:
- PersistenceConfig: Storage and logging configuration
- EventBus, Event, StoreEvent, FeatureEvent: Event system
- EntityModel: Typed entity base
- PersistenceError and subclasses: Error taxonomy
- configure_logging: Handler setup for applications
"""

from savekit.core.config import PersistenceConfig
from savekit.core.events import EventBus, Event, StoreEvent, FeatureEvent
from savekit.core.entity import EntityModel
from savekit.core.errors import (
    PersistenceError,
    StorageUnavailable,
    CorruptRecord,
    MigrationError,
    MigrationGap,
    UnsupportedSchemaVersion,
    FeatureUnavailable,
)
from savekit.core.log import configure_logging

__all__ = [
    # Config
    "PersistenceConfig",
    # Events
    "EventBus",
    "Event",
    "StoreEvent",
    "FeatureEvent",
    # Entities
    "EntityModel",
    # Errors
    "PersistenceError",
    "StorageUnavailable",
    "CorruptRecord",
    "MigrationError",
    "MigrationGap",
    "UnsupportedSchemaVersion",
    "FeatureUnavailable",
    # Logging
    "configure_logging",
]
