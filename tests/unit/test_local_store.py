# =============================================================================
# tests/unit/test_local_store.py
# Unit Tests for the Durable Stores
# =============================================================================

import json

from wedding_core.offline.local_store import (
    JsonFileStore,
    MemoryStore,
    StoreResult,
    open_store,
)


class TestStoreResult:
    """Result object semantics"""

    def test_ok_is_truthy(self):
        result = StoreResult.ok("data")
        assert result
        assert result.data == "data"

    def test_fail_is_falsy(self):
        result = StoreResult.fail("disk full")
        assert not result
        assert result.error == "disk full"


class TestJsonFileStore:
    """File-backed store"""

    def test_write_then_read(self, tmp_path):
        """Values survive a new store instance on the same file"""
        path = tmp_path / "cache" / "offline.json"
        JsonFileStore(path).write("wedding_app_albums", '{"value": 1}')

        result = JsonFileStore(path).read("wedding_app_albums")

        assert result
        assert result.data == '{"value": 1}'

    def test_missing_file_reads_as_absent(self, tmp_path):
        result = JsonFileStore(tmp_path / "missing.json").read("anything")
        assert result
        assert result.data is None

    def test_delete_and_keys(self, tmp_path):
        store = JsonFileStore(tmp_path / "offline.json")
        store.write("a", "1")
        store.write("b", "2")

        store.delete("a")

        assert store.keys().data == ["b"]

    def test_corrupt_file_fails_without_raising(self, tmp_path):
        """A non-JSON file yields failed results"""
        path = tmp_path / "offline.json"
        path.write_text("{{{ definitely not json")
        store = JsonFileStore(path)

        assert not store.read("a")
        assert not store.write("a", "1")
        assert not store.keys()

    def test_non_object_file_fails(self, tmp_path):
        path = tmp_path / "offline.json"
        path.write_text(json.dumps([1, 2, 3]))

        result = JsonFileStore(path).read("a")

        assert not result
        assert "JSON object" in result.error

    def test_no_temp_file_left_behind(self, tmp_path):
        """Writes go through a temp file that is renamed into place"""
        store = JsonFileStore(tmp_path / "offline.json")
        store.write("a", "1")

        assert sorted(p.name for p in tmp_path.iterdir()) == ["offline.json"]


class TestOpenStore:
    """Store selection"""

    def test_empty_path_gives_memory_store(self):
        assert isinstance(open_store(""), MemoryStore)
        assert isinstance(open_store(None), MemoryStore)

    def test_path_gives_file_store(self, tmp_path):
        store = open_store(tmp_path / "offline.json")
        assert isinstance(store, JsonFileStore)
