"""
Tests for the collection store and its backends.
"""

from unittest.mock import MagicMock

import pytest

from matlynx.contracts.records import User
from matlynx.exceptions import DeserializationError
from matlynx.store import (
    CURRENT_USER_KEY,
    MATERIALS_KEY,
    USERS_KEY,
    FileBackend,
    MemoryBackend,
    RedisBackend,
    Store,
    backend_from_url,
)


class TestStore:
    """Whole-collection reads and writes."""

    def test_read_absent_collection_is_empty(self, store):
        assert store.read(USERS_KEY) == []

    def test_write_replaces_whole_collection(self, store):
        store.write(MATERIALS_KEY, [{"id": "a"}, {"id": "b"}])
        store.write(MATERIALS_KEY, [{"id": "c"}])
        assert store.read(MATERIALS_KEY) == [{"id": "c"}]

    def test_read_preserves_order(self, store):
        records = [{"id": str(i)} for i in range(10)]
        store.write(MATERIALS_KEY, records)
        assert [r["id"] for r in store.read(MATERIALS_KEY)] == [str(i) for i in range(10)]

    def test_malformed_json_raises(self):
        backend = MemoryBackend()
        backend.set(USERS_KEY, "[{not json")
        with pytest.raises(DeserializationError) as exc_info:
            Store(backend).read(USERS_KEY)
        assert exc_info.value.key == USERS_KEY

    def test_collection_must_be_array_of_objects(self):
        backend = MemoryBackend()
        backend.set(USERS_KEY, '{"email": "a@b.co"}')
        with pytest.raises(DeserializationError):
            Store(backend).read(USERS_KEY)

        backend.set(USERS_KEY, "[1, 2]")
        with pytest.raises(DeserializationError):
            Store(backend).read(USERS_KEY)

    def test_record_pointer(self, store):
        assert store.read_record(CURRENT_USER_KEY) is None
        store.write_record(CURRENT_USER_KEY, {"email": "a@b.co"})
        assert store.read_record(CURRENT_USER_KEY) == {"email": "a@b.co"}
        store.remove(CURRENT_USER_KEY)
        assert store.read_record(CURRENT_USER_KEY) is None

    def test_record_pointer_must_be_object(self):
        backend = MemoryBackend()
        backend.set(CURRENT_USER_KEY, "[]")
        with pytest.raises(DeserializationError):
            Store(backend).read_record(CURRENT_USER_KEY)

    def test_record_not_matching_model_raises(self, store):
        store.write(USERS_KEY, [{"email": "only-email@example.com"}])
        with pytest.raises(DeserializationError):
            store.read_models(USERS_KEY, User)

    def test_remove_absent_key_is_noop(self, store):
        store.remove("matlynx_nothing_here")


class TestFileBackend:
    """Directory-of-files backend."""

    def test_roundtrip(self, tmp_path):
        backend = FileBackend(tmp_path / "data")
        assert backend.get(USERS_KEY) is None
        backend.set(USERS_KEY, "[]")
        assert backend.get(USERS_KEY) == "[]"
        backend.delete(USERS_KEY)
        assert backend.get(USERS_KEY) is None

    def test_no_temporary_files_left(self, tmp_path):
        backend = FileBackend(tmp_path)
        backend.set(USERS_KEY, "[1]")
        backend.set(USERS_KEY, "[2]")
        assert [p.name for p in tmp_path.iterdir()] == [f"{USERS_KEY}.json"]

    def test_session_keys_map_to_files(self, tmp_path):
        backend = FileBackend(tmp_path)
        backend.set(f"{CURRENT_USER_KEY}:abc", "{}")
        assert backend.get(f"{CURRENT_USER_KEY}:abc") == "{}"
        assert backend.get(CURRENT_USER_KEY) is None

    def test_store_persists_across_instances(self, tmp_path):
        Store(FileBackend(tmp_path)).write(USERS_KEY, [{"email": "a@b.co"}])
        assert Store(FileBackend(tmp_path)).read(USERS_KEY) == [{"email": "a@b.co"}]


class TestRedisBackend:
    """Redis string commands."""

    def test_commands(self):
        client = MagicMock()
        client.get.return_value = "[]"
        backend = RedisBackend(client)

        assert backend.get(USERS_KEY) == "[]"
        backend.set(USERS_KEY, "[1]")
        backend.delete(USERS_KEY)

        client.get.assert_called_once_with(USERS_KEY)
        client.set.assert_called_once_with(USERS_KEY, "[1]")
        client.delete.assert_called_once_with(USERS_KEY)


class TestBackendFromUrl:
    """Store URL parsing."""

    def test_memory(self):
        assert isinstance(backend_from_url("memory://"), MemoryBackend)

    def test_file(self, tmp_path):
        backend = backend_from_url(f"file://{tmp_path}")
        assert isinstance(backend, FileBackend)
        assert backend.directory == tmp_path

    def test_redis(self):
        # Client creation does not connect
        assert isinstance(backend_from_url("redis://localhost:6379/15"), RedisBackend)

    def test_unsupported(self):
        with pytest.raises(ValueError):
            backend_from_url("postgres://localhost/db")
