"""
Record codec - StoreRecord <-> bytes.

Records are written as a self-describing JSON envelope:

    {
      "format": "savekit/1",
      "feature": "quests",
      "schema_version": 2,
      "saved_at": "2026-01-01T12:00:00+00:00",
      "collections": {"active": {"q1": {...}}, "completed": {}},
      "checksum": "<base64 sha256>"
    }

The envelope is validated with jsonschema and the checksum is verified
before anything is handed to migrations.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

import jsonschema

from savekit.core.errors import CorruptRecord

if TYPE_CHECKING:
    from savekit.store.descriptor import FeatureDescriptor

logger = logging.getLogger(__name__)

FORMAT_TAG = "savekit/1"

ENVELOPE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["format", "feature", "schema_version", "collections"],
    "properties": {
        "format": {"const": FORMAT_TAG},
        "feature": {"type": "string", "minLength": 1},
        "schema_version": {"type": "integer", "minimum": 1},
        "saved_at": {"type": ["string", "null"]},
        "collections": {
            "type": "object",
            "additionalProperties": {"type": "object"},
        },
        "checksum": {"type": "string"},
    },
    "additionalProperties": False,
}


@dataclass
class StoreRecord:
    """
    Serialized unit of one feature's store.

    saved_at is informational and not part of equality.
    """
    feature: str
    schema_version: int
    collections: dict[str, dict[Any, Any]] = field(default_factory=dict)
    saved_at: Optional[str] = field(default=None, compare=False)


class JsonCodec:
    """
    Encodes StoreRecords as JSON with an optional SHA-256 checksum.

    Args:
        checksum: Write checksums, and verify them when present
        indent: JSON indentation (None for compact output)
    """

    def __init__(self, checksum: bool = True, indent: int | None = 2):
        self.checksum = checksum
        self.indent = indent

    def encode(self, record: StoreRecord) -> bytes:
        """
        Serialize a record.

        Raises:
            TypeError, ValueError: If an entity payload is not JSON serializable
        """
        envelope: dict[str, Any] = {
            "format": FORMAT_TAG,
            "feature": record.feature,
            "schema_version": record.schema_version,
            "saved_at": record.saved_at or datetime.now(timezone.utc).isoformat(),
            "collections": {
                name: {str(key): value for key, value in entities.items()}
                for name, entities in record.collections.items()
            },
        }
        # Checksum the envelope as it will read back: nested non-string keys
        # become strings and tuples become lists.
        envelope = json.loads(json.dumps(envelope, ensure_ascii=False))
        if self.checksum:
            envelope["checksum"] = calculate_checksum(envelope)
        return json.dumps(envelope, indent=self.indent, ensure_ascii=False).encode("utf-8")

    def decode(
        self,
        data: bytes,
        descriptor: Optional[FeatureDescriptor] = None,
        path: str = "",
    ) -> StoreRecord:
        """
        Deserialize a record.

        Args:
            data: Raw bytes from storage
            descriptor: If given, used to restore non-string keys
            path: Storage path, for error messages

        Raises:
            CorruptRecord: Invalid JSON, envelope or checksum
        """
        path = path or (descriptor.path if descriptor else "<record>")

        try:
            envelope = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CorruptRecord(path, f"not valid JSON: {e}") from e

        try:
            jsonschema.validate(instance=envelope, schema=ENVELOPE_SCHEMA)
        except jsonschema.ValidationError as e:
            raise CorruptRecord(path, f"invalid record envelope: {e.message}") from e

        expected = envelope.get("checksum")
        if expected and self.checksum and not verify_checksum(envelope, expected):
            logger.error(f"Checksum mismatch in '{path}'")
            raise CorruptRecord(path, "checksum mismatch")

        collections = envelope["collections"]
        if descriptor is not None and descriptor.key_type is not str:
            collections = {
                name: _restore_keys(path, name, entities, descriptor.key_type)
                for name, entities in collections.items()
            }

        return StoreRecord(
            feature=envelope["feature"],
            schema_version=envelope["schema_version"],
            collections=collections,
            saved_at=envelope.get("saved_at"),
        )


def _restore_keys(path: str, name: str, entities: dict, key_type: type) -> dict:
    try:
        return {key_type(key): value for key, value in entities.items()}
    except (TypeError, ValueError) as e:
        raise CorruptRecord(
            path, f"collection '{name}' has a key that is not {key_type.__name__}: {e}"
        ) from e


def calculate_checksum(envelope: dict[str, Any]) -> str:
    """Base64 SHA-256 of the canonical JSON form, excluding 'checksum'."""
    body = {k: v for k, v in envelope.items() if k != "checksum"}
    canonical = json.dumps(body, sort_keys=True, separators=(',', ':'), ensure_ascii=False)
    digest = hashlib.sha256(canonical.encode('utf-8')).digest()
    return base64.b64encode(digest).decode('ascii')


def verify_checksum(envelope: dict[str, Any], expected: str) -> bool:
    return calculate_checksum(envelope) == expected
