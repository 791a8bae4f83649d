import json

import pytest

from savekit.core.errors import CorruptRecord
from savekit.storage.codec import FORMAT_TAG, JsonCodec, StoreRecord
from savekit.store.descriptor import FeatureDescriptor


def _record():
    return StoreRecord(
        feature="quests",
        schema_version=2,
        collections={
            "active": {"q1": {"name": "Find the sword", "tags": ["main"]}},
            "completed": {},
        },
    )


def test_encode_decode():
    codec = JsonCodec()
    data = codec.encode(_record())

    envelope = json.loads(data)
    assert envelope["format"] == FORMAT_TAG
    assert envelope["feature"] == "quests"
    assert "checksum" in envelope
    assert envelope["saved_at"]

    assert codec.decode(data) == _record()


def test_saved_at_preserved():
    record = _record()
    record.saved_at = "2026-01-01T00:00:00+00:00"

    decoded = JsonCodec().decode(JsonCodec().encode(record))
    assert decoded.saved_at == "2026-01-01T00:00:00+00:00"


def test_tampered_record_rejected():
    data = JsonCodec().encode(_record())
    tampered = data.replace(b"Find the sword", b"Find the spoon")

    with pytest.raises(CorruptRecord, match="checksum"):
        JsonCodec().decode(tampered, path="quests")


def test_checksum_disabled():
    plain = JsonCodec(checksum=False, indent=None)
    data = plain.encode(_record())

    assert "checksum" not in json.loads(data)
    # Records without a checksum still load with a checksumming codec
    assert JsonCodec().decode(data) == _record()


def test_invalid_json():
    with pytest.raises(CorruptRecord, match="not valid JSON"):
        JsonCodec().decode(b"{not json", path="quests")


def test_not_utf8():
    with pytest.raises(CorruptRecord):
        JsonCodec().decode(b"\xff\xfe\x00")


@pytest.mark.parametrize("envelope", [
    {"feature": "quests", "schema_version": 1, "collections": {}},
    {"format": "other/9", "feature": "quests", "schema_version": 1, "collections": {}},
    {"format": FORMAT_TAG, "feature": "quests", "schema_version": 0, "collections": {}},
    {"format": FORMAT_TAG, "feature": "quests", "schema_version": 1, "collections": {"a": []}},
    {"format": FORMAT_TAG, "feature": "quests", "schema_version": 1, "collections": {}, "extra": 1},
    [1, 2, 3],
])
def test_invalid_envelope(envelope):
    data = json.dumps(envelope).encode("utf-8")
    with pytest.raises(CorruptRecord, match="envelope"):
        JsonCodec().decode(data, path="quests")


def test_int_keys_restored():
    descriptor = FeatureDescriptor(name="slots", collections=("saves",), key_type=int)
    record = StoreRecord(feature="slots", schema_version=1, collections={"saves": {1: {"a": 1}, 2: {"a": 2}}})

    codec = JsonCodec()
    decoded = codec.decode(codec.encode(record), descriptor)

    assert decoded.collections == {"saves": {1: {"a": 1}, 2: {"a": 2}}}
    # Without the descriptor, keys stay strings
    assert list(codec.decode(codec.encode(record)).collections["saves"]) == ["1", "2"]


def test_bad_int_key():
    descriptor = FeatureDescriptor(name="slots", collections=("saves",), key_type=int)
    record = StoreRecord(feature="slots", schema_version=1, collections={"saves": {"first": {}}})

    codec = JsonCodec()
    with pytest.raises(CorruptRecord, match="not int"):
        codec.decode(codec.encode(record), descriptor)


def test_unserializable_payload():
    record = StoreRecord(feature="quests", schema_version=1, collections={"active": {"q1": object()}})

    with pytest.raises(TypeError):
        JsonCodec().encode(record)


def test_nested_int_keys_keep_checksum_valid():
    record = StoreRecord(
        feature="notes",
        schema_version=1,
        collections={"all": {"n1": {"slots": {2: "a", 10: "b"}}}},
    )

    codec = JsonCodec()
    decoded = codec.decode(codec.encode(record))

    # Nested keys come back as JSON strings; only top-level keys are restored
    assert decoded.collections == {"all": {"n1": {"slots": {"2": "a", "10": "b"}}}}


def test_tuple_payload_keeps_checksum_valid():
    record = StoreRecord(feature="notes", schema_version=1, collections={"all": {"n1": {"pos": (1, 2)}}})

    codec = JsonCodec()
    assert codec.decode(codec.encode(record)).collections == {"all": {"n1": {"pos": [1, 2]}}}
