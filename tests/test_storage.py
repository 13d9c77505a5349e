from __future__ import annotations

from pathlib import Path

import pytest

from userstore.storage import MemoryStorage, SQLiteStorage, StorageError, StorageQuotaExceeded, resolve_storage_path
from userstore.store import UserStore


@pytest.fixture()
def sqlite_storage(tmp_path: Path) -> SQLiteStorage:
    return SQLiteStorage(tmp_path / "nested" / "userstore.sqlite3")


def test_memory_storage_get_set_remove() -> None:
    storage = MemoryStorage()

    assert storage.get("k") is None
    storage.set("k", "v")
    assert storage.get("k") == "v"
    storage.remove("k")
    assert storage.get("k") is None
    storage.remove("k")


def test_memory_storage_quota_counts_replaced_value_once() -> None:
    storage = MemoryStorage(quota_bytes=10)

    storage.set("k", "12345")
    storage.set("k", "123456789")
    assert storage.get("k") == "123456789"

    with pytest.raises(StorageQuotaExceeded):
        storage.set("k", "1234567890")
    assert storage.get("k") == "123456789"


def test_memory_storage_rejects_negative_quota() -> None:
    with pytest.raises(ValueError):
        MemoryStorage(quota_bytes=-1)


def test_sqlite_storage_creates_directory_and_round_trips(sqlite_storage: SQLiteStorage) -> None:
    assert sqlite_storage.path.parent.is_dir()
    assert sqlite_storage.get("k") is None

    sqlite_storage.set("k", "first")
    sqlite_storage.set("k", "second")
    assert sqlite_storage.get("k") == "second"

    sqlite_storage.remove("k")
    assert sqlite_storage.get("k") is None
    sqlite_storage.remove("k")


def test_sqlite_storage_initialize_is_idempotent(sqlite_storage: SQLiteStorage) -> None:
    sqlite_storage.set("k", "kept")
    sqlite_storage.initialize()

    assert sqlite_storage.get("k") == "kept"


def test_store_persists_across_sqlite_instances(tmp_path: Path) -> None:
    path = tmp_path / "users.sqlite3"
    first = UserStore(SQLiteStorage(path))
    first.initialize()
    result = first.add({"username": "judy", "email": "judy@example.com", "password": "pw"})
    assert result.success is True

    second = UserStore(SQLiteStorage(path))
    users = second.initialize()

    assert [user.username for user in users] == ["admin", "motion", "judy"]
    assert second.find_by_email("JUDY@example.com") == result.user


def test_resolve_storage_path_prefers_env_value(tmp_path: Path) -> None:
    custom = tmp_path / "custom.sqlite3"

    assert resolve_storage_path(str(custom)) == custom.resolve()
    assert resolve_storage_path(None).name == "userstore.sqlite3"


def test_sqlite_storage_wraps_directory_errors(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(StorageError):
        SQLiteStorage(blocker / "sub" / "userstore.sqlite3")
