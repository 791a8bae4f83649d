"""
Durable storage collaborators.

A backend maps a feature-scoped logical path ("quests",
"inventory_items") to one opaque blob of bytes. Stores never touch
files or databases directly.

Provides:
- FileStorage: one file per path, atomic replace on write
- SqliteStorage: one row per path in an embedded database
- MemoryStorage: dict-backed, for tests and non-persistent mode
"""

from __future__ import annotations

import logging
import os
import re
import sqlite3
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from savekit.core.errors import StorageUnavailable

if TYPE_CHECKING:
    from savekit.core.config import PersistenceConfig

logger = logging.getLogger(__name__)

_VALID_PATH = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")


def validate_path(path: str) -> str:
    """
    Check a logical storage path.

    Paths are single names: no separators, no '..'.
    """
    if not _VALID_PATH.match(path) or ".." in path:
        raise ValueError(f"Invalid storage path: {path!r}")
    return path


class StorageBackend(ABC):
    """Interface the persistence core calls for durable I/O."""

    @abstractmethod
    def read(self, path: str) -> Optional[bytes]:
        """Return the stored bytes, or None if nothing is stored."""

    @abstractmethod
    def write(self, path: str, data: bytes) -> None:
        """Replace the record at path. Readers never see a partial write."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Check whether a record is stored at path."""

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Delete a record. Returns False if there was none."""

    @abstractmethod
    def list_paths(self) -> list[str]:
        """List stored paths."""


class MemoryStorage(StorageBackend):
    """In-process storage. Nothing survives the process."""

    def __init__(self):
        self._records: dict[str, bytes] = {}

    def read(self, path: str) -> Optional[bytes]:
        return self._records.get(validate_path(path))

    def write(self, path: str, data: bytes) -> None:
        self._records[validate_path(path)] = bytes(data)

    def exists(self, path: str) -> bool:
        return validate_path(path) in self._records

    def delete(self, path: str) -> bool:
        return self._records.pop(validate_path(path), None) is not None

    def list_paths(self) -> list[str]:
        return sorted(self._records)


class FileStorage(StorageBackend):
    """
    Stores each path as <root>/<path><suffix>.

    Writes go to a temp file in the same directory and are moved into
    place with os.replace(), so a crash mid-write leaves the previous
    record intact.
    """

    def __init__(self, root: str | Path, suffix: str = ".json"):
        self.root = Path(root)
        self.suffix = suffix

    def _file_for(self, path: str) -> Path:
        return self.root / f"{validate_path(path)}{self.suffix}"

    def read(self, path: str) -> Optional[bytes]:
        file_path = self._file_for(path)
        try:
            return file_path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error(f"Failed to read {file_path}: {e}")
            raise StorageUnavailable(path, str(e)) from e

    def write(self, path: str, data: bytes) -> None:
        file_path = self._file_for(path)
        tmp_path = None
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.root, prefix=f".{path}.", suffix=".tmp"
            )
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, file_path)
        except OSError as e:
            logger.error(f"Failed to write {file_path}: {e}")
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
            raise StorageUnavailable(path, str(e)) from e

    def exists(self, path: str) -> bool:
        return self._file_for(path).is_file()

    def delete(self, path: str) -> bool:
        file_path = self._file_for(path)
        try:
            file_path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageUnavailable(path, str(e)) from e

    def list_paths(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(
            p.name[: -len(self.suffix)] if self.suffix else p.name
            for p in self.root.iterdir()
            if p.is_file() and p.name.endswith(self.suffix) and not p.name.startswith(".")
        )


class SqliteStorage(StorageBackend):
    """
    Stores records in a single sqlite table (path TEXT, data BLOB).

    Each write is its own transaction.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path))
            if not self._initialized:
                with conn:
                    conn.execute(
                        "CREATE TABLE IF NOT EXISTS records ("
                        " path TEXT PRIMARY KEY,"
                        " data BLOB NOT NULL)"
                    )
                self._initialized = True
            return conn
        except (OSError, sqlite3.Error) as e:
            logger.error(f"Failed to open {self.db_path}: {e}")
            raise StorageUnavailable(str(self.db_path), str(e)) from e

    def read(self, path: str) -> Optional[bytes]:
        validate_path(path)
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT data FROM records WHERE path = ?", (path,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageUnavailable(path, str(e)) from e
        finally:
            conn.close()
        return bytes(row[0]) if row else None

    def write(self, path: str, data: bytes) -> None:
        validate_path(path)
        conn = self._connect()
        try:
            with conn:
                conn.execute(
                    "INSERT INTO records (path, data) VALUES (?, ?) "
                    "ON CONFLICT(path) DO UPDATE SET data = excluded.data",
                    (path, sqlite3.Binary(data)),
                )
        except sqlite3.Error as e:
            logger.error(f"Failed to write '{path}' to {self.db_path}: {e}")
            raise StorageUnavailable(path, str(e)) from e
        finally:
            conn.close()

    def exists(self, path: str) -> bool:
        validate_path(path)
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT 1 FROM records WHERE path = ?", (path,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageUnavailable(path, str(e)) from e
        finally:
            conn.close()
        return row is not None

    def delete(self, path: str) -> bool:
        validate_path(path)
        conn = self._connect()
        try:
            with conn:
                cursor = conn.execute("DELETE FROM records WHERE path = ?", (path,))
        except sqlite3.Error as e:
            raise StorageUnavailable(path, str(e)) from e
        finally:
            conn.close()
        return cursor.rowcount > 0

    def list_paths(self) -> list[str]:
        conn = self._connect()
        try:
            rows = conn.execute("SELECT path FROM records ORDER BY path").fetchall()
        except sqlite3.Error as e:
            raise StorageUnavailable(str(self.db_path), str(e)) from e
        finally:
            conn.close()
        return [r[0] for r in rows]


def create_storage(config: PersistenceConfig) -> StorageBackend:
    """Build the backend selected by config.backend."""
    if config.backend == "file":
        return FileStorage(config.save_root, suffix=config.file_suffix)
    if config.backend == "sqlite":
        return SqliteStorage(config.database_path)
    return MemoryStorage()
