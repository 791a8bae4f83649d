import os

import pytest

from savekit.core.config import PersistenceConfig
from savekit.core.errors import StorageUnavailable
from savekit.storage.backends import (
    FileStorage,
    MemoryStorage,
    SqliteStorage,
    create_storage,
    validate_path,
)


@pytest.fixture(params=["memory", "file", "sqlite"])
def backend(request, tmp_path):
    if request.param == "memory":
        return MemoryStorage()
    if request.param == "file":
        return FileStorage(tmp_path / "files")
    return SqliteStorage(tmp_path / "db" / "saves.db")


def test_read_missing_returns_none(backend):
    assert backend.read("quests") is None
    assert not backend.exists("quests")


def test_write_then_read(backend):
    backend.write("quests", b'{"a": 1}')

    assert backend.exists("quests")
    assert backend.read("quests") == b'{"a": 1}'


def test_write_replaces(backend):
    backend.write("quests", b"first")
    backend.write("quests", b"second")

    assert backend.read("quests") == b"second"
    assert backend.list_paths() == ["quests"]


def test_delete(backend):
    backend.write("quests", b"x")

    assert backend.delete("quests") is True
    assert backend.delete("quests") is False
    assert backend.read("quests") is None


def test_list_paths_sorted(backend):
    backend.write("quests", b"1")
    backend.write("inventory_items", b"2")

    assert backend.list_paths() == ["inventory_items", "quests"]


@pytest.mark.parametrize("bad", ["", "../etc", "a/b", ".hidden", "a..b", "with space"])
def test_invalid_paths_rejected(backend, bad):
    with pytest.raises(ValueError):
        backend.write(bad, b"x")


def test_validate_path_accepts_plain_names():
    assert validate_path("inventory_items") == "inventory_items"
    assert validate_path("slot-1.v2") == "slot-1.v2"


def test_file_storage_layout(tmp_path):
    storage = FileStorage(tmp_path / "saves")
    storage.write("quests", b"data")

    assert (tmp_path / "saves" / "quests.json").read_bytes() == b"data"
    # No temp files left behind
    assert sorted(os.listdir(tmp_path / "saves")) == ["quests.json"]


def test_file_storage_ignores_temp_files(tmp_path):
    root = tmp_path / "saves"
    root.mkdir()
    (root / ".quests.abc.tmp").write_bytes(b"partial")
    (root / "notes.txt").write_bytes(b"other")

    storage = FileStorage(root)
    assert storage.list_paths() == []


def test_file_storage_failed_write_keeps_previous(tmp_path, monkeypatch):
    storage = FileStorage(tmp_path / "saves")
    storage.write("quests", b"good")

    def failing_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", failing_replace)

    with pytest.raises(StorageUnavailable, match="disk full"):
        storage.write("quests", b"bad")

    monkeypatch.undo()
    assert storage.read("quests") == b"good"
    assert storage.list_paths() == ["quests"]
    assert sorted(os.listdir(tmp_path / "saves")) == ["quests.json"]


def test_file_storage_unwritable_root(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    storage = FileStorage(blocker / "saves")
    with pytest.raises(StorageUnavailable):
        storage.write("quests", b"x")


def test_sqlite_survives_new_instance(tmp_path):
    db = tmp_path / "saves.db"
    SqliteStorage(db).write("quests", b"persisted")

    assert SqliteStorage(db).read("quests") == b"persisted"


def test_create_storage(tmp_path):
    assert isinstance(create_storage(PersistenceConfig(backend="memory")), MemoryStorage)

    file_backend = create_storage(PersistenceConfig(save_root=tmp_path, backend="file"))
    assert isinstance(file_backend, FileStorage)
    assert file_backend.root == tmp_path

    sqlite_backend = create_storage(PersistenceConfig(save_root=tmp_path, backend="sqlite"))
    assert isinstance(sqlite_backend, SqliteStorage)
    assert sqlite_backend.db_path == tmp_path / "saves.db"
