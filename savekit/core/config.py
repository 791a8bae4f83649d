"""
Configuration for the persistence layer.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping


class PersistenceConfig:
    """Configuration for stores, storage backends and logging."""

    BACKENDS = ("file", "sqlite", "memory")

    def __init__(
        self,
        save_root: str | Path = "game/saves",
        backend: str = "file",
        file_suffix: str = ".json",
        database_name: str = "saves.db",
        checksum: bool = True,
        indent: int | None = 2,
        validate_entities: bool = True,
        log_level: int | str = logging.INFO,
    ):
        if backend not in self.BACKENDS:
            raise ValueError(
                f"Unknown storage backend '{backend}', expected one of {self.BACKENDS}"
            )
        self.save_root = Path(save_root)
        self.backend = backend
        self.file_suffix = file_suffix
        self.database_name = database_name
        self.checksum = checksum
        self.indent = indent
        self.validate_entities = validate_entities
        self.log_level = log_level

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PersistenceConfig:
        """
        Build a config from a mapping (e.g. a parsed settings file).

        Raises:
            ValueError: On unknown keys or an unknown backend
        """
        known = {
            "save_root", "backend", "file_suffix", "database_name",
            "checksum", "indent", "validate_entities", "log_level",
        }
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**data)

    @property
    def database_path(self) -> Path:
        """Location of the sqlite database when backend == 'sqlite'."""
        return self.save_root / self.database_name

    def __repr__(self) -> str:
        return (
            f"PersistenceConfig(save_root={str(self.save_root)!r}, "
            f"backend={self.backend!r}, checksum={self.checksum})"
        )
