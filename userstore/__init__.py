"""Local user-record store with registration, lookup and authentication."""

from __future__ import annotations

from .models import ROLE_ADMIN, ROLE_CLIENT, StoreResult, UserRecord
from .schemas import RegistrationRequest
from .storage import (
    KeyValueStorage,
    MemoryStorage,
    SQLiteStorage,
    StorageError,
    StorageQuotaExceeded,
    resolve_storage_path,
)
from .store import DEFAULT_STORAGE_KEY, UserStore


__all__ = [
    "DEFAULT_STORAGE_KEY",
    "KeyValueStorage",
    "MemoryStorage",
    "ROLE_ADMIN",
    "ROLE_CLIENT",
    "RegistrationRequest",
    "SQLiteStorage",
    "StorageError",
    "StorageQuotaExceeded",
    "StoreResult",
    "UserRecord",
    "UserStore",
    "resolve_storage_path",
]
