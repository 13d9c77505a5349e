"""Configuration management for the user store."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import yaml

from .storage import KeyValueStorage, MemoryStorage, SQLiteStorage, resolve_storage_path
from .store import DEFAULT_STORAGE_KEY

BACKENDS = ("sqlite", "memory")


@dataclass(frozen=True)
class StoreConfig:
    """Storage settings for a :class:`~userstore.store.UserStore`."""

    backend: str = "sqlite"
    path: Optional[Path] = None
    key: str = DEFAULT_STORAGE_KEY
    quota_bytes: Optional[int] = None

    @staticmethod
    def from_dict(data: Dict[str, object], base_path: Path | None = None) -> "StoreConfig":
        """Create a :class:`StoreConfig` from the ``storage`` section of a config file."""

        backend = str(data.get("backend", "sqlite")).strip().lower()
        if backend not in BACKENDS:
            raise ValueError(f"Unknown storage backend '{backend}'; expected one of: {', '.join(BACKENDS)}")

        key = str(data.get("key") or DEFAULT_STORAGE_KEY).strip()
        if not key:
            raise ValueError("Storage key must not be empty")

        raw_path = data.get("path")
        if raw_path:
            candidate = Path(str(raw_path)).expanduser()
            if not candidate.is_absolute() and base_path is not None:
                candidate = base_path / candidate
            path: Optional[Path] = candidate.resolve(strict=False)
        else:
            path = None

        quota = data.get("quota_bytes")
        return StoreConfig(
            backend=backend,
            path=path,
            key=key,
            quota_bytes=int(quota) if quota is not None else None,
        )


def load_store_config(config_path: Path) -> StoreConfig:
    """Load store settings from a YAML file; a missing file yields defaults."""

    if not config_path.exists():
        return StoreConfig()

    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping at the top level")

    storage_raw = raw.get("storage") or {}
    if not isinstance(storage_raw, dict):
        raise ValueError("The 'storage' section must be a mapping")

    return StoreConfig.from_dict(storage_raw, base_path=config_path.parent)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "userstore.yaml").resolve(strict=False)
    return candidate


def build_storage(config: StoreConfig, *, db_env: Optional[str] = None) -> KeyValueStorage:
    """Instantiate the backend described by ``config``.

    ``db_env`` (usually ``USERSTORE_DB_PATH``) is consulted only when the
    configuration does not name a path itself.
    """

    if config.backend == "memory":
        return MemoryStorage(quota_bytes=config.quota_bytes)
    path = config.path or resolve_storage_path(db_env)
    return SQLiteStorage(path)


__all__ = ["BACKENDS", "StoreConfig", "build_storage", "load_store_config", "resolve_config_path"]
