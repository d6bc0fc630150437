"""
Tests for storage backends and transaction support
"""

import sqlite3

import pytest

from token_ledger.storage import InMemoryStorage, SQLiteStorage, create_storage


test_data = {
    "id": "snap_001",
    "total_supply": "100000000000000000000000",
    "balances": {"deployer": "99999999999999999999000"},
}


@pytest.fixture(params=["memory", "sqlite"])
def storage(request):
    backend = InMemoryStorage() if request.param == "memory" else SQLiteStorage(":memory:")
    yield backend
    backend.close()


class TestStorageBackends:
    """Behaviour shared by every backend"""
    
    def test_save_and_load(self, storage):
        storage.save("snapshots", "snap_001", test_data)
        assert storage.load("snapshots", "snap_001") == test_data
        assert storage.load("snapshots", "missing") is None
    
    def test_save_replaces(self, storage):
        storage.save("snapshots", "snap_001", test_data)
        storage.save("snapshots", "snap_001", {"id": "snap_001", "total_supply": "1"})
        assert storage.load("snapshots", "snap_001")["total_supply"] == "1"
        assert storage.count("snapshots") == 1
    
    def test_load_all_and_find(self, storage):
        storage.save("events", "1", {"kind": "burn", "n": 1})
        storage.save("events", "2", {"kind": "transfer", "n": 2})
        storage.save("events", "3", {"kind": "burn", "n": 3})
        
        assert [r["n"] for r in storage.load_all("events")] == [1, 2, 3]
        assert [r["n"] for r in storage.find("events", {"kind": "burn"})] == [1, 3]
        assert storage.find("events", {"missing": 1}) == []
        assert storage.count("events") == 3
    
    def test_atomic_commits(self, storage):
        with storage.atomic():
            storage.save("snapshots", "snap_001", test_data)
        assert storage.load("snapshots", "snap_001") == test_data
    
    def test_atomic_rolls_back_on_error(self, storage):
        storage.save("snapshots", "keep", {"v": 1})
        with pytest.raises(RuntimeError):
            with storage.atomic():
                storage.save("snapshots", "keep", {"v": 2})
                storage.save("snapshots", "new", {"v": 3})
                raise RuntimeError("boom")
        assert storage.load("snapshots", "keep") == {"v": 1}
        assert storage.load("snapshots", "new") is None
    
    def test_nested_atomic_joins_outer(self, storage):
        with pytest.raises(RuntimeError):
            with storage.atomic():
                with storage.atomic():
                    storage.save("snapshots", "inner", {"v": 1})
                assert storage.in_transaction
                raise RuntimeError("boom")
        assert storage.load("snapshots", "inner") is None
        assert not storage.in_transaction


class TestInMemoryStorage:
    
    def test_returned_records_are_copies(self):
        storage = InMemoryStorage()
        storage.save("t", "1", {"balances": {"a": "1"}})
        loaded = storage.load("t", "1")
        loaded["balances"]["a"] = "999"
        assert storage.load("t", "1")["balances"]["a"] == "1"


class TestSQLiteStorage:
    
    def test_persists_to_file(self, tmp_path):
        path = tmp_path / "ledger.db"
        storage = SQLiteStorage(path)
        storage.save("snapshots", "snap_001", test_data)
        storage.close()
        
        reopened = SQLiteStorage(path)
        assert reopened.load("snapshots", "snap_001") == test_data
        reopened.close()
    
    def test_closed_connection_raises_sqlite_error(self):
        storage = SQLiteStorage(":memory:")
        storage.close()
        with pytest.raises(sqlite3.ProgrammingError):
            storage.save("snapshots", "snap_001", test_data)


class TestCreateStorage:
    
    def test_backends_by_name(self):
        assert isinstance(create_storage("memory"), InMemoryStorage)
        assert isinstance(create_storage("sqlite", ":memory:"), SQLiteStorage)
    
    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_storage("postgres")
