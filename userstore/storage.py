"""Synchronous key-value storage backends for the user store."""
from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

logger = logging.getLogger("userstore.storage")


class StorageError(RuntimeError):
    """Raised when a storage backend cannot complete a read or write."""


class StorageQuotaExceeded(StorageError):
    """Raised when a write would exceed the configured storage quota."""


class KeyValueStorage(Protocol):
    """String-keyed, string-valued mapping with synchronous access."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_storage_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the SQLite storage file."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "userstore.sqlite3").resolve(strict=False)


class MemoryStorage:
    """Dict-backed storage with an optional quota on the total stored size.

    The quota counts the UTF-8 encoded length of every key and value, which
    is close enough to how browsers account for local storage usage.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None, *, quota_bytes: Optional[int] = None) -> None:
        if quota_bytes is not None and quota_bytes < 0:
            raise ValueError("quota_bytes must not be negative")
        self._data: Dict[str, str] = dict(initial or {})
        self._quota_bytes = quota_bytes

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self._quota_bytes is not None:
            projected = self._usage(excluding=key) + len(key.encode("utf-8")) + len(value.encode("utf-8"))
            if projected > self._quota_bytes:
                raise StorageQuotaExceeded(
                    f"Writing {key!r} needs {projected} bytes; quota is {self._quota_bytes}"
                )
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)

    def _usage(self, *, excluding: Optional[str] = None) -> int:
        return sum(
            len(key.encode("utf-8")) + len(value.encode("utf-8"))
            for key, value in self._data.items()
            if key != excluding
        )


class SQLiteStorage:
    """Key-value storage kept in a single SQLite table."""

    def __init__(self, path: Path) -> None:
        try:
            _ensure_directory(path)
        except OSError as exc:
            raise StorageError(f"Cannot create storage directory for {path}") from exc
        self._path = path
        self._lock = threading.Lock()
        self.initialize()

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        """Create the backing table if it does not already exist."""

        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                    """
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to initialise storage at {self._path}") from exc
        logger.debug("SQLite storage ready at %s", self._path)

    def get(self, key: str) -> Optional[str]:
        try:
            with self._lock, self._connect() as conn:
                row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to read {key!r} from {self._path}") from exc
        if row is None:
            return None
        return str(row["value"])

    def set(self, key: str, value: str) -> None:
        try:
            with self._lock, self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO kv_store (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value
                    """,
                    (key, value),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to write {key!r} to {self._path}") from exc

    def remove(self, key: str) -> None:
        try:
            with self._lock, self._connect() as conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to remove {key!r} from {self._path}") from exc


__all__ = [
    "KeyValueStorage",
    "MemoryStorage",
    "SQLiteStorage",
    "StorageError",
    "StorageQuotaExceeded",
    "resolve_storage_path",
]
