"""
Storage module - durable backends and the record codec.
"""

from savekit.storage.backends import (
    StorageBackend,
    FileStorage,
    SqliteStorage,
    MemoryStorage,
    create_storage,
)
from savekit.storage.codec import JsonCodec, StoreRecord, FORMAT_TAG

__all__ = [
    "StorageBackend",
    "FileStorage",
    "SqliteStorage",
    "MemoryStorage",
    "create_storage",
    "JsonCodec",
    "StoreRecord",
    "FORMAT_TAG",
]
