"""
Persistence error taxonomy.

- StorageUnavailable: the storage medium could not be read or written.
  Recoverable: retry, or continue with an in-memory store.
- CorruptRecord: a stored record exists but cannot be trusted
  (bad JSON, bad envelope, checksum mismatch, invalid entity payload).
- MigrationGap: the migration registry is missing a required step.
  Fatal for the feature that owns the store.
- FeatureUnavailable: a feature was requested from the registry but
  failed to boot.

A lookup miss is not an error: repositories return None.
"""

from __future__ import annotations

from typing import Sequence


class PersistenceError(Exception):
    """Base class for all savekit errors."""


class StorageUnavailable(PersistenceError):
    """
    Raised when durable storage cannot be read or written.

    Attributes:
        path: Feature-scoped storage address
        reason: Human readable cause
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Storage unavailable for '{path}': {reason}")


class CorruptRecord(StorageUnavailable):
    """Stored record exists but failed decoding or validation."""


class MigrationError(PersistenceError):
    """Base class for schema migration failures."""


class MigrationGap(MigrationError):
    """
    Raised when a required migration step is not registered.

    The store refuses to run on unmigrated data.
    """

    def __init__(
        self,
        feature: str,
        missing_versions: Sequence[int],
        stored_version: int,
        target_version: int,
    ):
        self.feature = feature
        self.missing_versions = list(missing_versions)
        self.stored_version = stored_version
        self.target_version = target_version
        missing = ", ".join(str(v) for v in self.missing_versions)
        super().__init__(
            f"Cannot migrate '{feature}' from v{stored_version} to "
            f"v{target_version}: no migration registered for version(s) {missing}"
        )


class UnsupportedSchemaVersion(MigrationError):
    """Stored data was written by a newer schema than this code knows."""

    def __init__(self, feature: str, stored_version: int, target_version: int):
        self.feature = feature
        self.stored_version = stored_version
        self.target_version = target_version
        super().__init__(
            f"'{feature}' was saved with schema v{stored_version}, "
            f"newer than supported v{target_version}"
        )


class FeatureUnavailable(PersistenceError):
    """Raised by the feature registry for features that failed to boot."""

    def __init__(self, name: str, cause: BaseException | None = None):
        self.name = name
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Feature '{name}' is unavailable{detail}")
