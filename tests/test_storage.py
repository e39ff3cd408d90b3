"""Tests for storage adapters."""
import pytest

from idlecore.errors import StorageError
from idlecore.persistence.storage import FileStorage, MemoryStorage


@pytest.fixture(params=["memory", "file"])
def storage(request, tmp_path):
    if request.param == "memory":
        return MemoryStorage()
    return FileStorage(tmp_path / "saves")


def test_get_missing_is_none(storage):
    assert storage.get_item("nothing") is None
    assert not storage.has_item("nothing")


def test_set_get_remove(storage):
    storage.set_item("slot-0", '{"a": 1}')
    assert storage.get_item("slot-0") == '{"a": 1}'
    assert storage.has_item("slot-0")
    storage.remove_item("slot-0")
    assert storage.get_item("slot-0") is None


def test_overwrite(storage):
    storage.set_item("k", "one")
    storage.set_item("k", "two")
    assert storage.get_item("k") == "two"


def test_remove_missing_is_fine(storage):
    storage.remove_item("never-written")


def test_keys_sorted(storage):
    storage.set_item("b", "2")
    storage.set_item("a", "1")
    assert storage.keys() == ["a", "b"]


class TestFileStorage:
    def test_one_file_per_key(self, tmp_path):
        storage = FileStorage(tmp_path)
        storage.set_item("hacker-incremental-slot-0", "data")
        assert (tmp_path / "hacker-incremental-slot-0.json").read_text() == "data"
        assert [p.name for p in tmp_path.iterdir()] == ["hacker-incremental-slot-0.json"]

    def test_keys_on_missing_directory(self, tmp_path):
        assert FileStorage(tmp_path / "nope").keys() == []

    def test_unsafe_key_rejected(self, tmp_path):
        with pytest.raises(StorageError, match="unsupported characters"):
            FileStorage(tmp_path).set_item("../escape", "x")

    def test_read_failure_is_storage_error(self, tmp_path):
        (tmp_path / "broken.json").mkdir()
        with pytest.raises(StorageError) as exc_info:
            FileStorage(tmp_path).get_item("broken")
        assert exc_info.value.operation == "read"
        assert exc_info.value.key == "broken"
