"""
Store module - versioned stores, caching repositories, migrations.
"""

from savekit.store.descriptor import FeatureDescriptor
from savekit.store.migration import (
    Migration,
    MigrationRegistry,
    add_default_field,
    rename_field,
    rename_collection,
)
from savekit.store.versioned import VersionedStore
from savekit.store.repository import CachingRepository

__all__ = [
    "FeatureDescriptor",
    "Migration",
    "MigrationRegistry",
    "add_default_field",
    "rename_field",
    "rename_collection",
    "VersionedStore",
    "CachingRepository",
]
